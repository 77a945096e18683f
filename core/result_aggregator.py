"""Combine detections, blocking assessment and page facts into one record."""
from typing import Any, Dict, List, Optional

from core.detector import round_confidence
from models.blocking import BlockingAssessment, PageAnalysis
from models.detection import ConfidenceLevel, DetectedTechnology
from models.evidence import PageEvidence
from models.result import AnalysisResult, DetectionStats


def calculate_stats(technologies: List[DetectedTechnology]) -> DetectionStats:
    """Count by confidence level, mean confidence and the top detection.

    ``technologies`` is expected to be sorted by confidence already.
    """
    by_confidence = {
        level.value: sum(1 for t in technologies if t.confidence_level == level)
        for level in (ConfidenceLevel.HIGH, ConfidenceLevel.MEDIUM, ConfidenceLevel.LOW)
    }
    average = 0.0
    if technologies:
        average = round_confidence(sum(t.confidence for t in technologies) / len(technologies))

    return DetectionStats(
        total=len(technologies),
        by_confidence=by_confidence,
        average_confidence=average,
        top_detection=technologies[0] if technologies else None,
    )


def raw_data(evidence: PageEvidence) -> Dict[str, Any]:
    return {
        "headers": dict(evidence.headers.items()),
        "cookies": dict(evidence.cookies),
        "meta_tags": dict(evidence.meta),
    }


def aggregate(
    evidence: PageEvidence,
    technologies: List[DetectedTechnology],
    page_analysis: PageAnalysis,
    blocking: Optional[BlockingAssessment] = None,
    include_raw_data: bool = False,
) -> AnalysisResult:
    return AnalysisResult(
        url=evidence.url,
        final_url=evidence.final_url,
        status_code=evidence.status_code,
        fetch_time=evidence.response_time,
        technologies=technologies,
        stats=calculate_stats(technologies),
        page_analysis=page_analysis,
        text_content_length=evidence.text_content_length,
        blocking=blocking,
        raw_data=raw_data(evidence) if include_raw_data else None,
    )
