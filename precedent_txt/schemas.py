"""
schemas.py

Pydantic models shared across the conversion pipeline.

Case records are immutable once loaded. Everything else is created,
used and discarded while a single case is processed.
"""

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field


class DecisionDate(BaseModel):
    """Date the decision was handed down."""

    model_config = ConfigDict(frozen=True)

    year: int
    month: int
    day: int


class CaseRecord(BaseModel):
    """
    One document's metadata.

    ``name`` is the stem used for every file belonging to the case:
    the mapping key in keyed inputs, or ``{case_number}_{year}_{month}_{day}``
    in list inputs.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    name: str
    case_number: str
    source_url: Optional[str] = Field(default=None, alias="full_pdf_link")
    decision_date: Optional[DecisionDate] = Field(default=None, alias="date")


class RawCase(BaseModel):
    """An input entry before validation, kept so schema errors stay per-case."""

    label: str
    payload: dict
    keyed: bool = True


class CacheState(BaseModel):
    pdf_cached: bool
    text_produced: bool


class CacheDecision(BaseModel):
    should_download: bool
    should_run: bool


class PageArtifact(BaseModel):
    """Files belonging to one page of the OCR path. Cropping is in place."""

    page_index: int = Field(ge=1)
    raster_path: Path
    cropped_path: Path
    recognized_text_path: Path


class ExtractionOutcome(BaseModel):
    raw_text: str = ""  # text-layer output after boilerplate filtering
    joined_text: str = ""
    diagnostics: List[str] = Field(default_factory=list)
    pages: List[PageArtifact] = Field(default_factory=list)


class CaseStage(str, Enum):
    PENDING = "pending"
    SKIPPED_CACHED = "skipped_cached"
    DOWNLOADING = "downloading"
    COUNTING = "counting"
    EXTRACTING = "extracting"
    JOINING = "joining"
    DONE = "done"
    FAILED = "failed"


class CaseEvent(BaseModel):
    """Progress notification emitted at a stage boundary."""

    name: str
    stage: CaseStage
    message: str = ""


class ConversionOptions(BaseModel):
    """Per-run choices, usually built from command-line arguments."""

    tmp_dir: Path = Path("tmp")
    output_dir: Path = Path(".")
    mode: str = "p2t"
    language: Optional[str] = None
    timeout: Optional[float] = None  # per external invocation; None -> config default
    reuse_cache: bool = True
    force_rerun: bool = False


class CaseResult(BaseModel):
    name: str
    status: str = "pending"  # done | skipped | failed
    stages: List[CaseStage] = Field(default_factory=list)
    diagnostics: List[str] = Field(default_factory=list)
    error: Optional[str] = None
    output_path: Optional[Path] = None


class BatchReport(BaseModel):
    results: List[CaseResult] = Field(default_factory=list)

    @computed_field
    @property
    def done(self) -> int:
        return sum(1 for r in self.results if r.status == "done")

    @computed_field
    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.status == "skipped")

    @computed_field
    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if r.status == "failed")

    @property
    def ok(self) -> bool:
        return self.failed == 0
