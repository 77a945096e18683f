from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from models.blocking import BlockingAssessment, PageAnalysis
from models.detection import DetectedTechnology


@dataclass(frozen=True)
class DetectionStats:
    total: int = 0
    by_confidence: Dict[str, int] = field(default_factory=lambda: {"HIGH": 0, "MEDIUM": 0, "LOW": 0})
    average_confidence: float = 0.0
    top_detection: Optional[DetectedTechnology] = None


@dataclass(frozen=True)
class AnalysisResult:
    """The single output record of one analysis run."""
    url: str
    final_url: str
    status_code: int
    fetch_time: float
    technologies: List[DetectedTechnology]
    stats: DetectionStats
    page_analysis: PageAnalysis
    text_content_length: int = 0
    blocking: Optional[BlockingAssessment] = None # Only set when blocking detection is enabled
    raw_data: Optional[Dict[str, Any]] = None
