import asyncio
import argparse
import json
import logging
import sys
from dataclasses import asdict

from core.channel_registry import ChannelRegistry
from core.config import DetectionConfig, load_config, parse_mode
from core.constants import DetectionMode
from core.engine import DetectionEngine
from signatures.loader import load_signatures

def _truncate_value(value: str, max_length: int = 200) -> str:
    """Truncate a string to max_length, adding ellipsis if truncated."""
    if not value:
        return value
    if len(value) <= max_length:
        return value
    return value[:max_length] + "..."

def _truncate_matches(technology: dict, value_max_length: int) -> None:
    for match in technology.get("matches", []):
        match["matched_values"] = [_truncate_value(v, value_max_length) for v in match["matched_values"]]

def _serialize_result(result, value_max_length: int = 200) -> dict:
    data = asdict(result)
    for technology in data["technologies"]:
        _truncate_matches(technology, value_max_length)
    if data["stats"]["top_detection"]:
        _truncate_matches(data["stats"]["top_detection"], value_max_length)
    return data

def _print_summary(result) -> None:
    print("\nRESULTS", file=sys.stderr)
    print("===============================", file=sys.stderr)
    print(f"URL: {result.url}", file=sys.stderr)
    print(f"Technologies Detected: {result.stats.total}", file=sys.stderr)
    print(f"Average Confidence: {result.stats.average_confidence}%", file=sys.stderr)
    if not result.technologies:
        print("None detected", file=sys.stderr)
    for tech in result.technologies:
        print(f"\t- {tech.name} [Confidence: {tech.confidence}%, {tech.detection_type.value}]", file=sys.stderr)
    if result.blocking is not None:
        print(f"\nLikely Blocked: {'Yes' if result.blocking.likely_blocked else 'No'} (score {result.blocking.score})", file=sys.stderr)
    print("===============================", file=sys.stderr)

def main():
    parser = argparse.ArgumentParser(description="Website technology fingerprinting and bot-block detection CLI")
    parser.add_argument("url", nargs="?", help="Target URL (e.g., https://example.com)")
    parser.add_argument("--mode", type=str, choices=[m.value for m in DetectionMode], help="Detection mode (default: LOOSE, or the config file's value)")
    parser.add_argument("--config", type=str, help="Path to a YAML detection config file")
    parser.add_argument("--signatures", type=str, nargs="+", help="Signature files or directories; later files override earlier ones")
    parser.add_argument("--no-blocking", action="store_true", help="Skip blocking/challenge analysis")
    parser.add_argument("--include-raw-data", action="store_true", help="Include response headers, cookies and meta tags in the output")
    parser.add_argument("--exclude", type=str, nargs="+", help="Exclude evidence channels (e.g., --exclude html dom)")
    parser.add_argument("--list-channels", action="store_true", help="List all evidence channels and exit")
    parser.add_argument("--headers-file", type=str, help="Path to JSON file containing additional HTTP headers (e.g., User-Agent, Cookie)")
    parser.add_argument("--value-max-length", type=int, default=200, help="Maximum length for matched values (default: 200, use 0 for unlimited)")
    parser.add_argument("--save", type=str, metavar="PATH", help="Also write the JSON result to PATH")
    parser.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logging verbosity level (default: INFO)")
    args = parser.parse_args()

    # Configure logging
    logging.basicConfig(
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        level=getattr(logging, args.log_level),
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    logger = logging.getLogger(__name__)

    if args.list_channels:
        print("Available evidence channels:")
        for name in ChannelRegistry.get_all_names():
            print(f"  - {name}")
        return 0

    if not args.url:
        parser.error("URL is required unless using --list-channels")

    # Load custom headers from JSON file if provided
    custom_headers = {}
    if args.headers_file:
        try:
            with open(args.headers_file, 'r') as f:
                custom_headers = json.load(f)
        except FileNotFoundError:
            logger.error(f"Headers file not found: {args.headers_file}")
            return 1
        except json.JSONDecodeError as e:
            logger.error(f"Invalid JSON in headers file: {e}")
            return 1
        if not isinstance(custom_headers, dict):
            logger.error("Headers file must contain a JSON object (dictionary)")
            return 1
        logger.info(f"Loaded {len(custom_headers)} custom headers from {args.headers_file}")

    try:
        config = load_config(args.config) if args.config else DetectionConfig()
        config = config.override(
            mode=parse_mode(args.mode) if args.mode else None,
            blocking_detection_enabled=False if args.no_blocking else None,
            include_raw_data=True if args.include_raw_data else None,
            exclude_channels=frozenset(args.exclude) if args.exclude else None,
        )
        signatures = load_signatures(args.signatures)
        engine = DetectionEngine(signatures, config)
    except (OSError, ValueError) as e:
        logger.error(f"Could not initialize detection engine: {e}")
        return 1

    logger.info(f"Starting scan of {args.url} (mode: {config.mode.value}, blocking detection: {config.blocking_detection_enabled})")
    evidence = asyncio.run(engine.scan_url(args.url, headers=custom_headers))
    if evidence.fetch_failed:
        logger.error(f"There was an error fetching {args.url}")
        return 1
    logger.info(f"Fetched {evidence.final_url}, status: {evidence.status_code}, redirects: {evidence.redirect_count}")

    result = engine.analyze(evidence)

    # Use unlimited length if value_max_length is 0
    max_len = args.value_max_length or sys.maxsize
    output = json.dumps(_serialize_result(result, max_len), indent=2)
    print(output)

    if args.save:
        with open(args.save, "w", encoding="utf-8") as f:
            f.write(output)
        logger.info(f"Result saved to {args.save}")

    _print_summary(result)
    return 0

if __name__ == "__main__":
    sys.exit(main())
