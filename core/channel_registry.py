"""Registration of evidence-channel checkers."""
import logging
from typing import Dict, List, Set, Type

logger = logging.getLogger(__name__)


class ChannelRegistry:
    """Registry of evidence-channel checkers.

    Channels are kept sorted by their declared position so that scoring
    order (and therefore ``detected_using``) does not depend on import order.
    """

    _channels: Dict[str, Type] = {}
    _positions: Dict[str, int] = {}

    @classmethod
    def register(cls, name: str, position: int):
        """Decorator to register a channel checker class.

        Args:
            name: Channel type as it appears in signature data (e.g. "scriptSrc")
            position: Scoring order among channels

        Example:
            @ChannelRegistry.register("headers", position=2)
            class HeadersChannel:
                def check(self, signature: Signature, evidence: PageEvidence) -> ChannelResult:
                    ...
        """
        def decorator(channel_class: Type):
            if name in cls._channels:
                logger.warning(f"Channel '{name}' already registered, overwriting")

            cls._channels[name] = channel_class
            cls._positions[name] = position
            logger.debug(f"Registered channel: {name} -> {channel_class.__name__}")
            return channel_class
        return decorator

    @classmethod
    def get_all_names(cls) -> List[str]:
        """Get names of all registered channels in scoring order."""
        return sorted(cls._channels, key=lambda name: cls._positions[name])

    @classmethod
    def instantiate_all(cls, exclude: Set[str] = None) -> Dict[str, object]:
        """Instantiate registered channels in scoring order, skipping excluded names."""
        exclude = exclude or set()
        instances = {}

        for name in cls.get_all_names():
            if name in exclude:
                logger.info(f"Skipping excluded channel: {name}")
                continue
            instances[name] = cls._channels[name]()
            logger.debug(f"Instantiated channel: {name}")

        return instances
