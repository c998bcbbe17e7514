import json
import logging
from collections import defaultdict
from typing import Iterable

from sqlalchemy.orm import Session

import crud
from models import Vote
from schemas import CategoryStats

logger = logging.getLogger(__name__)


def tally_votes(votes: Iterable[Vote]) -> CategoryStats:
    """Count selections per category and DJ.

    Rows whose ``vote_data`` is not a JSON object of strings are skipped
    with a warning. Ties are left as-is.
    """
    counts = defaultdict(lambda: defaultdict(int))
    for vote in votes:
        try:
            selections = json.loads(vote.vote_data)
        except (TypeError, ValueError):
            logger.warning("Skipping vote %s: vote_data is not valid JSON", vote.id)
            continue
        if not isinstance(selections, dict):
            logger.warning("Skipping vote %s: vote_data is not an object", vote.id)
            continue

        for category_id, dj_id in selections.items():
            if not isinstance(dj_id, str):
                logger.warning("Skipping selection %r in vote %s: DJ id is not a string", category_id, vote.id)
                continue
            counts[category_id][dj_id] += 1

    return {category_id: dict(djs) for category_id, djs in counts.items()}


def get_stats(db: Session) -> CategoryStats:
    return tally_votes(crud.get_all_votes(db))
