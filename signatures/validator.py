"""
Report overlaps, dangling references and implies/requires cycles in a signature library.
"""

from collections import defaultdict
from typing import Dict, List

from signatures.loader import SignatureLibrary, load_signatures


def detect_cookie_overlaps(library: SignatureLibrary) -> Dict[str, List[str]]:
    """
    Detect cookie names declared by more than one technology.

    Returns:
        Dictionary with cookie names as keys and list of technologies as values
    """
    cookies_map = defaultdict(list)
    for name, signature in library.items():
        for cookie in signature.cookies:
            cookies_map[cookie].append(name)
    return {cookie: techs for cookie, techs in cookies_map.items() if len(techs) > 1}


def detect_header_overlaps(library: SignatureLibrary) -> Dict[str, List[str]]:
    """
    Detect (header, pattern) pairs declared by more than one technology.

    Only identical patterns count: many technologies legitimately share a
    header name such as ``Server``.
    """
    headers_map = defaultdict(list)
    for name, signature in library.items():
        for header, pattern in signature.headers.items():
            headers_map[f"{header.lower()}: {pattern}"].append(name)
    return {header: techs for header, techs in headers_map.items() if len(techs) > 1}


def detect_dangling_references(library: SignatureLibrary) -> Dict[str, List[str]]:
    """Technologies named in implies/requires that are not in the library."""
    dangling = {}
    for name, signature in library.items():
        missing = [target for target in signature.transitive_targets if target not in library]
        if missing:
            dangling[name] = missing
    return dangling


def detect_cycles(library: SignatureLibrary) -> List[List[str]]:
    """
    Find implies/requires cycles.

    Cycles are legal (detection terminates on them) but usually unintended.
    Each cycle is reported once, starting from its first technology in
    library order.
    """
    cycles: List[List[str]] = []
    seen_cycles = set()
    finished = set()

    for root in library:
        if root in finished:
            continue
        # Iterative DFS keeping the current path for cycle extraction
        path: List[str] = []
        on_path = set()
        stack = [(root, iter(library[root].transitive_targets))]
        path.append(root)
        on_path.add(root)
        while stack:
            node, children = stack[-1]
            child = next(children, None)
            if child is None:
                stack.pop()
                path.pop()
                on_path.discard(node)
                finished.add(node)
                continue
            if child not in library:
                continue
            if child in on_path:
                cycle = path[path.index(child):]
                key = frozenset(cycle)
                if key not in seen_cycles:
                    seen_cycles.add(key)
                    cycles.append(cycle + [child])
                continue
            if child in finished:
                continue
            path.append(child)
            on_path.add(child)
            stack.append((child, iter(library[child].transitive_targets)))

    return cycles


def print_validation_report(library: SignatureLibrary, verbose: bool = True) -> None:
    """Print a validation report of a signature library."""
    print("\n" + "=" * 70)
    print("SIGNATURE VALIDATION REPORT")
    print("=" * 70)
    print(f"\nTotal Signatures: {len(library)}")

    cookie_overlaps = detect_cookie_overlaps(library)
    if cookie_overlaps:
        print(f"\n⚠ COOKIE OVERLAPS: {len(cookie_overlaps)}")
        for cookie, techs in sorted(cookie_overlaps.items()):
            print(f"  '{cookie}' -> {', '.join(techs)}")
    else:
        print("\n✓ No cookie overlaps")

    header_overlaps = detect_header_overlaps(library)
    if header_overlaps:
        print(f"\n⚠ HEADER OVERLAPS: {len(header_overlaps)}")
        if verbose:
            for header, techs in sorted(header_overlaps.items()):
                print(f"  '{header}' -> {', '.join(techs)}")
    else:
        print("\n✓ No header overlaps")

    dangling = detect_dangling_references(library)
    if dangling:
        print(f"\n⚠ DANGLING REFERENCES: {len(dangling)}")
        for name, missing in sorted(dangling.items()):
            print(f"  {name} -> {', '.join(missing)}")
    else:
        print("\n✓ No dangling implies/requires references")

    cycles = detect_cycles(library)
    if cycles:
        print(f"\n⚠ IMPLIES/REQUIRES CYCLES: {len(cycles)}")
        for cycle in cycles:
            print(f"  {' -> '.join(cycle)}")
    else:
        print("\n✓ No implies/requires cycles")

    print("\n" + "=" * 70)


if __name__ == "__main__":
    import sys
    import argparse

    parser = argparse.ArgumentParser(description="Validate technology signature files")
    parser.add_argument("paths", nargs="*", help="Signature files or directories (default: bundled data)")
    parser.add_argument(
        '--no-verbose',
        action='store_false',
        dest='verbose',
        default=True,
        help='Do not list every header overlap'
    )
    args = parser.parse_args()

    try:
        library = load_signatures(args.paths or None)
    except (OSError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)
    print_validation_report(library, verbose=args.verbose)
