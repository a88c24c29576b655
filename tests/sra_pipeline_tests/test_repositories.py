import pytest
from unittest.mock import MagicMock
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from db.repositories import (AnalysisRepository, SampleRepository, StudyRepository,
                             TaxonomyRepository)
from db.schema.sra_metadata_schema import Analysis, Sample, Study, Taxonomy


def test_repository_requires_session():
    with pytest.raises(ValueError, match="Session is required"):
        StudyRepository(None)


def test_find_by_accession_missing(db_session):
    assert StudyRepository(db_session).find_by_accession("ERP404") is None


def test_save_and_find(db_session):
    repository = StudyRepository(db_session)
    study = repository.save(Study(accession="ERP1", title="First"))

    assert study.id is not None
    assert repository.find_by_accession("ERP1") is study


def test_find_or_save_returns_existing(db_session):
    repository = StudyRepository(db_session)
    existing = repository.save(Study(accession="ERP1", title="Stored"))

    resolved = repository.find_or_save(Study(accession="ERP1", title="Fresh copy"))

    assert resolved is existing
    assert resolved.title == "Stored"
    assert db_session.query(Study).count() == 1


def test_save_rolls_back_on_error(db_session):
    repository = StudyRepository(db_session)
    repository.save(Study(accession="ERP1"))

    with pytest.raises(IntegrityError):
        repository.save(Study(accession="ERP1"))

    # The session is usable again after the rollback
    assert repository.find_by_accession("ERP1") is not None


def test_save_rolls_back_on_mocked_failure():
    session = MagicMock()
    session.commit.side_effect = SQLAlchemyError("disk full")

    with pytest.raises(SQLAlchemyError):
        AnalysisRepository(session).save(Analysis(accession="ERZ1"))
    session.rollback.assert_called_once()


def test_analysis_requires_study(db_session):
    with pytest.raises(IntegrityError):
        AnalysisRepository(db_session).save(Analysis(accession="ERZ1"))


def test_find_or_save_all_mixes_existing_and_new(db_session):
    repository = SampleRepository(db_session)
    stored = repository.save(Sample(accession="ERS2"))

    samples = [Sample(accession="ERS1"), Sample(accession="ERS2"), Sample(accession="ERS3")]
    resolved = repository.find_or_save_all(samples)

    assert [sample.accession for sample in resolved] == ["ERS1", "ERS2", "ERS3"]
    assert resolved[1] is stored
    assert resolved[0] is samples[0] and resolved[0].id is not None
    assert db_session.query(Sample).count() == 3


def test_find_or_save_all_collapses_duplicates(db_session):
    first, second = Sample(accession="ERS1"), Sample(accession="ERS1")
    resolved = SampleRepository(db_session).find_or_save_all([first, second])

    assert resolved == [first, first]
    assert db_session.query(Sample).count() == 1


def test_find_or_save_all_empty():
    session = MagicMock()

    assert SampleRepository(session).find_or_save_all([]) == []
    session.query.assert_not_called()


def test_find_or_save_all_persists_nothing_on_error():
    session = MagicMock()
    session.query.return_value.filter.return_value.all.return_value = []
    session.commit.side_effect = SQLAlchemyError("boom")

    with pytest.raises(SQLAlchemyError):
        SampleRepository(session).find_or_save_all([Sample(accession="ERS1")])
    session.rollback.assert_called_once()


def test_taxonomy_find_or_save(db_session):
    repository = TaxonomyRepository(db_session)
    root = repository.find_or_save(Taxonomy(taxonomy_id=1, name="root", rank="no rank"))
    again = repository.find_or_save(Taxonomy(taxonomy_id=1, name="root again"))

    assert again is root
    assert repository.find_by_taxonomy_id(1).name == "root"
    assert repository.find_by_taxonomy_id(2) is None


@pytest.mark.parametrize("lookup", [
    lambda session: StudyRepository(session).find_by_accession("ERP1"),
    lambda session: AnalysisRepository(session).find_or_save(Analysis(accession="ERZ1")),
    lambda session: TaxonomyRepository(session).find_by_taxonomy_id(9606),
    lambda session: SampleRepository(session).find_or_save_all([Sample(accession="ERS1")]),
])
def test_failed_lookup_rolls_back_session(lookup):
    """
    Test that a failed SELECT rolls the session back so later statements can run.
    """
    session = MagicMock()
    session.query.side_effect = SQLAlchemyError("current transaction is aborted")

    with pytest.raises(SQLAlchemyError):
        lookup(session)
    session.rollback.assert_called_once()
    session.commit.assert_not_called()
