# File: pipeline/sra_pipeline/study_cache.py
import logging
import threading
from typing import Callable, Dict, Optional
from db.schema.sra_metadata_schema import Study

logger = logging.getLogger(__name__)


class StudyCache:
    """
    Accession-to-Study map for one import run with per-accession single-flight loading.

    `get_or_load` runs the loader at most once per accession even when several threads
    ask for the same accession at the same time; later callers block until the first
    one has stored its result and then read it. Loads for different accessions do not
    wait on each other. Entries are never evicted, and a failed load stores nothing.
    """

    def __init__(self) -> None:
        self._studies: Dict[str, Study] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock_for(self, accession: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(accession)
            if lock is None:
                lock = self._locks[accession] = threading.Lock()
            return lock

    def get(self, accession: str) -> Optional[Study]:
        return self._studies.get(accession)

    def get_or_load(self, accession: str, loader: Callable[[str], Study]) -> Study:
        """
        Returns the cached study for `accession`, running `loader(accession)` on a miss.

        Args:
            accession (str): Study accession.
            loader (Callable[[str], Study]): Produces the resolved study.

        Returns:
            Study: The single study instance cached for this accession.
        """
        study = self._studies.get(accession)
        if study is not None:
            return study

        with self._lock_for(accession):
            # Re-check: another caller may have loaded it while we waited
            study = self._studies.get(accession)
            if study is None:
                study = loader(accession)
                self._studies[accession] = study
                logger.debug(f"Cached study {accession}")
            return study

    def snapshot(self) -> Dict[str, Study]:
        with self._guard:
            return dict(self._studies)

    def __contains__(self, accession: str) -> bool:
        return accession in self._studies

    def __len__(self) -> int:
        return len(self._studies)
