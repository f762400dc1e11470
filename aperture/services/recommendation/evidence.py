from collections.abc import Mapping, Sequence

from aperture.core.config import settings
from aperture.models.candidate import EvidenceRow, SelectedCandidate
from aperture.models.profile import WatchedItem
from aperture.services.profile.taste import cosine_similarity
from aperture.services.recommendation.constants import (
    EVIDENCE_TYPE_FAVORITE,
    EVIDENCE_TYPE_HIGHLY_RATED,
    EVIDENCE_TYPE_WATCHED,
)


def evidence_type(item: WatchedItem) -> str:
    if item.is_favorite:
        return EVIDENCE_TYPE_FAVORITE
    if item.play_count > 1:
        return EVIDENCE_TYPE_HIGHLY_RATED
    return EVIDENCE_TYPE_WATCHED


def build_evidence(
    selected: Sequence[SelectedCandidate],
    watched: Sequence[WatchedItem],
    embeddings: Mapping[str, Sequence[float]],
    limit: int | None = None,
) -> list[EvidenceRow]:
    """
    Link each selected item to the watched items it most resembles.

    Used by explanation generation ("because you watched ...").
    Selected or watched items without an embedding produce no evidence.
    """
    limit = settings.EVIDENCE_LIMIT if limit is None else limit
    watched_vectors = [(item, embeddings[item.id]) for item in watched if embeddings.get(item.id)]

    rows: list[EvidenceRow] = []
    for pick in selected:
        vector = embeddings.get(pick.id)
        if not vector:
            continue

        ranked = sorted(
            ((cosine_similarity(vector, w_vec), item) for item, w_vec in watched_vectors),
            key=lambda x: (-x[0], x[1].id),
        )
        for similarity, item in ranked[:limit]:
            rows.append(
                EvidenceRow(
                    candidate_id=pick.id,
                    similar_item_id=item.id,
                    similarity=similarity,
                    evidence_type=evidence_type(item),
                )
            )
    return rows
