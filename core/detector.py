"""Score every signature in the library and resolve implied/required technologies."""
import logging
import math
from typing import Dict, List, Mapping, Set, Tuple

from core.constants import MAX_CONFIDENCE, DetectionMode, get_confidence_level
from models.detection import DetectedTechnology, DetectionType
from models.evidence import PageEvidence
from models.signature import PatternDescriptor, Signature

logger = logging.getLogger(__name__)


def round_confidence(confidence: float) -> float:
    """Round half-up to one decimal place."""
    return math.floor(confidence * 10 + 0.5) / 10


class TechnologyDetector:
    def __init__(self, signatures: Mapping[str, Signature], channels: Mapping[str, object], mode: DetectionMode = DetectionMode.NORMAL):
        self.signatures = signatures
        self.channels = channels
        self.mode = mode

    def score(self, signature: Signature, evidence: PageEvidence) -> Tuple[float, List[str], List[PatternDescriptor]]:
        """Sum channel confidences for one technology, capped at 100."""
        total = 0.0
        detected_using: List[str] = []
        matches: List[PatternDescriptor] = []
        for name, channel in self.channels.items():
            result = channel.check(signature, evidence)
            if result.matched:
                total += result.confidence
                detected_using.append(name)
                matches.extend(result.matches)
        return min(total, MAX_CONFIDENCE), detected_using, matches

    def detect(self, evidence: PageEvidence) -> List[DetectedTechnology]:
        """Detect technologies in library order, following implies/requires edges.

        Traversal is an explicit depth-first worklist. A technology is tried at
        most once as a direct candidate and at most once as a transitive target,
        so cyclic implies/requires data terminates.
        """
        threshold = self.mode.threshold
        logger.debug(f"Detection mode: {self.mode.value}, min confidence: {threshold}%")

        detected: Dict[str, DetectedTechnology] = {}
        visited = {DetectionType.DETECTION: set(), DetectionType.TRANSITIVE: set()}
        scores: Dict[str, Tuple[float, List[str], List[PatternDescriptor]]] = {}

        for root in self.signatures:
            stack = [(root, DetectionType.DETECTION)]
            while stack:
                name, reached_as = stack.pop()
                seen: Set[str] = visited[reached_as]
                if name in seen:
                    continue
                seen.add(name)

                if name in detected:
                    # Already recorded, and its edges were pushed when it was
                    continue

                signature = self.signatures.get(name)
                if signature is None:
                    logger.debug(f"Skipping unknown technology {name!r}")
                    continue

                if name not in scores:
                    scores[name] = self.score(signature, evidence)
                confidence, detected_using, matches = scores[name]
                is_detected = confidence >= threshold
                logger.debug(f"{name}: {confidence:.1f}% confidence ({get_confidence_level(confidence).value})")

                if not is_detected and reached_as is not DetectionType.TRANSITIVE:
                    continue

                detected[name] = DetectedTechnology(
                    name=name,
                    confidence=round_confidence(confidence),
                    confidence_level=get_confidence_level(confidence),
                    detected_using=list(detected_using),
                    matches=list(matches),
                    detection_type=DetectionType.DETECTION if is_detected else DetectionType.TRANSITIVE,
                )
                if is_detected:
                    logger.debug(f"Detected {name} - {confidence:.1f}% confidence")

                # Reversed so that the first edge is walked first
                for target in reversed(signature.transitive_targets):
                    stack.append((target, DetectionType.TRANSITIVE))

        # sorted() is stable: ties keep encounter order
        return sorted(detected.values(), key=lambda d: -d.confidence)
