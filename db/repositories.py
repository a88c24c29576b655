# File: db/repositories.py
# Find-or-save repositories over a single SQLAlchemy session. Each write commits its own
# transaction, so entities saved by one call survive a failure in a later call.

import logging
from typing import Dict, Generic, List, Optional, Type, TypeVar
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from db.schema.sra_metadata_schema import Analysis, Sample, Study, Taxonomy

logger = logging.getLogger(__name__)

EntityT = TypeVar("EntityT")


class AccessionRepository(Generic[EntityT]):
    """
    Persistence for entities identified by a unique accession column.

    Attributes:
        session (Session): The session every query and write goes through.
        model (Type): The ORM model handled by the repository.
    """
    model: Type = None

    def __init__(self, session: Session) -> None:
        if session is None:
            raise ValueError("Session is required for database operations.")
        self.session = session

    def find_by_accession(self, accession: str) -> Optional[EntityT]:
        """
        Looks up a stored entity by accession.

        Args:
            accession (str): The archive accession.

        Returns:
            Optional[EntityT]: The stored entity, or None when absent.

        Raises:
            SQLAlchemyError: If the lookup fails; the session is rolled back first.
        """
        try:
            return self.session.query(self.model).filter_by(accession=accession).one_or_none()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error while looking up {self.model.__name__} {accession}: {e}")
            raise

    def save(self, entity: EntityT) -> EntityT:
        """
        Persists an entity and commits.

        Raises:
            SQLAlchemyError: If the write fails; the session is rolled back first.
        """
        try:
            self.session.add(entity)
            self.session.commit()
            logger.debug(f"Saved {self.model.__name__} {entity.accession}")
            return entity
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error while saving {self.model.__name__} {entity.accession}: {e}")
            raise

    def find_or_save(self, entity: EntityT) -> EntityT:
        """
        Returns the stored entity sharing the accession of `entity`, or saves `entity`.

        Args:
            entity (EntityT): A transient entity.

        Returns:
            EntityT: The existing persisted entity, or `entity` once saved.
        """
        existing = self.find_by_accession(entity.accession)
        if existing is not None:
            logger.debug(f"{self.model.__name__} {entity.accession} already stored; reusing it.")
            return existing
        return self.save(entity)


class StudyRepository(AccessionRepository[Study]):
    model = Study


class AnalysisRepository(AccessionRepository[Analysis]):
    model = Analysis


class SampleRepository(AccessionRepository[Sample]):
    model = Sample

    def find_or_save_all(self, samples: List[Sample]) -> List[Sample]:
        """
        Batched find-or-save.

        Existing samples are found with a single IN query, the new ones are added and
        committed together. The result follows the order of `samples`, and samples
        repeating an accession resolve to the same instance.

        Args:
            samples (List[Sample]): Transient samples.

        Returns:
            List[Sample]: Persisted samples, one per input sample.

        Raises:
            SQLAlchemyError: If the lookup or write fails; the session is rolled back first.
        """
        if not samples:
            return []

        accessions = {sample.accession for sample in samples}
        try:
            existing = self.session.query(Sample).filter(Sample.accession.in_(accessions)).all()
            resolved: Dict[str, Sample] = {sample.accession: sample for sample in existing}

            new_samples = []
            for sample in samples:
                if sample.accession not in resolved:
                    resolved[sample.accession] = sample
                    new_samples.append(sample)

            if new_samples:
                self.session.add_all(new_samples)
                self.session.commit()
            logger.info(
                f"Resolved {len(accessions)} samples: {len(existing)} existing, {len(new_samples)} new."
            )
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error during batched sample find-or-save: {e}")
            raise

        return [resolved[sample.accession] for sample in samples]


class TaxonomyRepository:
    """
    Persistence for taxonomy nodes, keyed by NCBI taxonomy id.
    """

    def __init__(self, session: Session) -> None:
        if session is None:
            raise ValueError("Session is required for database operations.")
        self.session = session

    def find_by_taxonomy_id(self, taxonomy_id: int) -> Optional[Taxonomy]:
        try:
            return self.session.query(Taxonomy).filter_by(taxonomy_id=taxonomy_id).one_or_none()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error while looking up taxonomy {taxonomy_id}: {e}")
            raise

    def find_or_save(self, taxonomy: Taxonomy) -> Taxonomy:
        existing = self.find_by_taxonomy_id(taxonomy.taxonomy_id)
        if existing is not None:
            return existing
        try:
            self.session.add(taxonomy)
            self.session.commit()
            return taxonomy
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error while saving taxonomy {taxonomy.taxonomy_id}: {e}")
            raise
