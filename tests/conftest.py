# tests/conftest.py
import pytest
import sys
import os

# Add the parent directory to the system path to ensure correct module import
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from config.db_config import Base
import db.schema.sra_metadata_schema  # noqa: F401  Registers the SRA tables on Base.metadata


# ---------------- Database Fixtures ----------------

@pytest.fixture(scope="function")
def engine():
    """
    In-memory SQLite engine with the SRA metadata tables created.
    """
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(engine):
    """
    Set up a database session for tests and tear it down afterward.
    """
    Session = sessionmaker(bind=engine, autoflush=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture(scope="function")
def source_engine():
    """
    In-memory SQLite engine shaped like the archive dump the XML is read from.
    """
    engine = create_engine("sqlite://")
    with engine.begin() as conn:
        conn.execute(text("CREATE TABLE study (study_id TEXT PRIMARY KEY, study_xml TEXT)"))
        conn.execute(text("CREATE TABLE analysis (analysis_id TEXT PRIMARY KEY, analysis_xml TEXT)"))
        conn.execute(text("CREATE TABLE sample (sample_id TEXT PRIMARY KEY, biosample_id TEXT, sample_xml TEXT)"))
        conn.execute(text("CREATE TABLE analysis_sample (analysis_id TEXT, sample_id TEXT)"))
    yield engine
    engine.dispose()


# ---------------- XML Fixtures ----------------

def _study_xml(accession, title="Whole genome sequencing of HNSC tumours"):
    return f"""<STUDY_SET>
    <STUDY accession="{accession}" alias="hnsc-wgs" center_name="EGA">
        <IDENTIFIERS><PRIMARY_ID>{accession}</PRIMARY_ID></IDENTIFIERS>
        <DESCRIPTOR>
            <STUDY_TITLE>{title}</STUDY_TITLE>
            <STUDY_TYPE existing_study_type="Whole Genome Sequencing"/>
            <STUDY_ABSTRACT>Tumour and matched normal genomes.</STUDY_ABSTRACT>
        </DESCRIPTOR>
    </STUDY>
</STUDY_SET>"""


def _analysis_xml(accession, study_accession, sample_accessions=()):
    sample_refs = "".join(f'<SAMPLE_REF accession="{sample}"/>' for sample in sample_accessions)
    return f"""<ANALYSIS_SET>
    <ANALYSIS accession="{accession}" alias="variant-calls" center_name="EGA">
        <TITLE>Somatic variant calls</TITLE>
        <DESCRIPTION>VCF files from the tumour/normal pairs.</DESCRIPTION>
        <STUDY_REF accession="{study_accession}"/>
        {sample_refs}
        <ANALYSIS_TYPE><SEQUENCE_VARIATION/></ANALYSIS_TYPE>
    </ANALYSIS>
</ANALYSIS_SET>"""


def _sample_xml(accession, taxon_id="9606", biosample=None):
    external_id = f'<EXTERNAL_ID namespace="BioSample">{biosample}</EXTERNAL_ID>' if biosample else ""
    taxon = f"<TAXON_ID>{taxon_id}</TAXON_ID>" if taxon_id is not None else ""
    return f"""<SAMPLE_SET>
    <SAMPLE accession="{accession}" alias="donor-{accession}">
        <IDENTIFIERS><PRIMARY_ID>{accession}</PRIMARY_ID>{external_id}</IDENTIFIERS>
        <TITLE>Tumour sample {accession}</TITLE>
        <SAMPLE_NAME>{taxon}<SCIENTIFIC_NAME>Homo sapiens</SCIENTIFIC_NAME></SAMPLE_NAME>
        <SAMPLE_ATTRIBUTES>
            <SAMPLE_ATTRIBUTE><TAG>gender</TAG><VALUE>female</VALUE></SAMPLE_ATTRIBUTE>
            <SAMPLE_ATTRIBUTE><TAG>phenotype</TAG><VALUE>HNSC</VALUE></SAMPLE_ATTRIBUTE>
        </SAMPLE_ATTRIBUTES>
    </SAMPLE>
</SAMPLE_SET>"""


@pytest.fixture
def study_xml():
    """Builds STUDY_SET XML for an accession."""
    return _study_xml


@pytest.fixture
def analysis_xml():
    """Builds ANALYSIS_SET XML for an analysis and the study it references."""
    return _analysis_xml


@pytest.fixture
def sample_xml():
    """Builds SAMPLE_SET XML for an accession."""
    return _sample_xml


@pytest.fixture
def populate_source(source_engine):
    """
    Returns a helper that inserts studies, analyses and samples into the source dump.
    `samples` maps an analysis accession to (sample_id, biosample_id, sample_xml) rows.
    """
    def _populate(studies=None, analyses=None, samples=None):
        with source_engine.begin() as conn:
            for study_id, xml in (studies or {}).items():
                conn.execute(text("INSERT INTO study VALUES (:id, :xml)"), {"id": study_id, "xml": xml})
            for analysis_id, xml in (analyses or {}).items():
                conn.execute(text("INSERT INTO analysis VALUES (:id, :xml)"), {"id": analysis_id, "xml": xml})
            for analysis_id, rows in (samples or {}).items():
                for sample_id, biosample_id, xml in rows:
                    conn.execute(
                        text("INSERT OR IGNORE INTO sample VALUES (:id, :biosample, :xml)"),
                        {"id": sample_id, "biosample": biosample_id, "xml": xml},
                    )
                    conn.execute(
                        text("INSERT INTO analysis_sample VALUES (:analysis, :sample)"),
                        {"analysis": analysis_id, "sample": sample_id},
                    )
        return source_engine
    return _populate
