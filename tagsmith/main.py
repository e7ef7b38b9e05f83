"""Tagsmith -- console entry point and configuration loading."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import yaml

from tagsmith.utils.constants import (
    APP_NAME,
    APP_VERSION,
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_MAX_RESULTS,
    DEFAULT_PROVIDER_ORDER,
    PROVIDER_LASTFM,
    SORT_BY_TRACK,
    TOKEN_TITLE,
    VALID_CASINGS,
    VALID_SORT_KEYS,
)
from tagsmith.utils.logger import get_logger, setup_logger

# Directories that should never be used as a library path (exact matches).
_DANGEROUS_PATHS = frozenset(
    {
        "/",
        "C:\\",
        "C:\\Windows",
        "C:\\Windows\\System32",
        "C:\\Program Files",
        "C:\\Program Files (x86)",
        "/usr",
        "/usr/bin",
        "/etc",
        "/var",
        "/tmp",
        "/System",
        "/Library",
        "/Applications",
        "/bin",
        "/sbin",
        "/lib",
        "/opt",
    }
)

# Collapsing deletes folders below the library root, so shallow roots are refused.
_MIN_PATH_DEPTH = 2

_CASING_KEYS = ("metadata_casing", "release_casing", "track_casing", "flat_casing")

_DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / DEFAULT_CONFIG_FILENAME


def _depth_reason(depth: int) -> str:
    return (
        f"is only {depth} level(s) deep from the filesystem root. "
        f"Library paths should be at least {_MIN_PATH_DEPTH} levels deep "
        f"because collapsing deletes folders (e.g. '/home/me/Music')."
    )


def _check_raw_windows_path(raw: str) -> str | None:
    """Check a drive-letter path as text (it does not resolve on POSIX)."""
    normalized = raw.replace("\\", "/").rstrip("/")
    if len(normalized) < 2 or normalized[1] != ":":
        return None

    lowered = normalized.lower()
    for dangerous in _DANGEROUS_PATHS:
        if ":" in dangerous and lowered == dangerous.replace("\\", "/").rstrip("/").lower():
            return f"resolves to a known system directory ({raw})."

    parts = [p for p in normalized.split("/") if p]
    depth = len(parts) - 1
    if depth < _MIN_PATH_DEPTH:
        return _depth_reason(depth)
    return None


def _is_dangerous_path(resolved: str) -> str | None:
    """Reason string if *resolved* is a system folder or too shallow, else None."""
    normalized = resolved.rstrip("/\\") or resolved
    for dangerous in _DANGEROUS_PATHS:
        if normalized.lower() == dangerous.lower():
            return f"resolves to a known system directory ({normalized})."

    depth = len(Path(resolved).parts) - 1
    if depth < _MIN_PATH_DEPTH:
        return _depth_reason(depth)
    return None


def validate_config(config: dict) -> list[str]:
    """Validate configuration values and return a list of warnings.

    Invalid values are replaced with their defaults in *config*. An unsafe
    ``library_path`` is cleared so nothing is scanned or collapsed.

    Args:
        config: Configuration dictionary (parsed YAML).

    Returns:
        Human-readable warnings. Empty if all checks pass.
    """
    warnings: list[str] = []

    lib_path = config.get("library_path") or ""
    if lib_path:
        reason = _check_raw_windows_path(lib_path) if ":" in lib_path else None
        if reason is None and not (len(lib_path) > 1 and lib_path[1] == ":"):
            reason = _is_dangerous_path(str(Path(lib_path).expanduser().resolve()))
        if reason:
            warnings.append(f"library_path '{lib_path}' {reason}")
            config["library_path"] = ""

    max_results = config.get("max_results", DEFAULT_MAX_RESULTS)
    if isinstance(max_results, bool) or not isinstance(max_results, int) or max_results < 1:
        warnings.append(
            f"max_results must be a positive integer, got {max_results!r}. "
            f"Using default ({DEFAULT_MAX_RESULTS})."
        )
        config["max_results"] = DEFAULT_MAX_RESULTS

    for key in _CASING_KEYS:
        value = config.get(key)
        if value is not None and value not in VALID_CASINGS:
            warnings.append(
                f"{key} must be one of {sorted(VALID_CASINGS)}, got {value!r}. Using the default."
            )
            del config[key]

    sort_by = config.get("sort_by", SORT_BY_TRACK)
    if sort_by not in VALID_SORT_KEYS:
        warnings.append(f"sort_by must be one of {sorted(VALID_SORT_KEYS)}, got {sort_by!r}.")
        config["sort_by"] = SORT_BY_TRACK

    track_template = config.get("track_template", "")
    if track_template and TOKEN_TITLE.lower() not in track_template.lower():
        warnings.append(
            f"track_template '{track_template}' does not contain {TOKEN_TITLE}. "
            f"File names may be unrecognizable."
        )

    providers = config.get("providers")
    if providers is not None:
        if not isinstance(providers, list):
            providers = []
        known = [p for p in providers if p in DEFAULT_PROVIDER_ORDER]
        unknown = [p for p in providers if p not in DEFAULT_PROVIDER_ORDER]
        if unknown:
            warnings.append(f"Unknown providers ignored: {', '.join(map(str, unknown))}")
        if not known:
            warnings.append("No usable providers configured. Using the default order.")
            known = list(DEFAULT_PROVIDER_ORDER)
        config["providers"] = known

    return warnings


def load_config(path: Path | str | None = None) -> dict:
    """Load configuration from a YAML file.

    Args:
        path: Config file; defaults to ``config/config.yaml`` next to the package.

    Returns:
        Configuration dictionary (suitable for ``AppConfig.from_dict()``).
        A missing file yields an empty dict.
    """
    config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    if not config_path.exists():
        return {}
    with open(config_path, encoding="utf-8") as f:
        config = yaml.safe_load(f) or {}
    if not isinstance(config, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    return config


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="tagsmith", description=f"{APP_NAME} v{APP_VERSION}")
    parser.add_argument("library", nargs="?", help="library folder (overrides library_path)")
    parser.add_argument("--config", help="path to config.yaml")
    parser.add_argument("--first", action="store_true", help="apply the first candidate without asking")
    parser.add_argument("--no-collapse", action="store_true", help="keep nested folders as they are")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument(
        "--clear-cache",
        nargs="?",
        const="all",
        choices=("all",) + DEFAULT_PROVIDER_ORDER,
        metavar="PROVIDER",
        help="empty the API response cache (all providers, or one) and exit",
    )
    return parser.parse_args(argv)


def _choose(candidate_count: int) -> int | None:
    """Ask for a candidate number; None skips the release."""
    while True:
        answer = input(f"Choose 1-{candidate_count} (Enter to skip): ").strip()
        if not answer:
            return None
        if answer.isdigit() and 1 <= int(answer) <= candidate_count:
            return int(answer) - 1
        print("Invalid choice.")


def main(argv: list[str] | None = None) -> int:
    """Console entry point: scan, collapse, search, choose and apply per release."""
    from tagsmith.core.release_processor import ReleaseProcessor
    from tagsmith.db.database import Database
    from tagsmith.db.repositories import ApiCacheRepository
    from tagsmith.models.config import AppConfig

    args = _parse_args(argv)

    raw_config = load_config(args.config)
    if args.library:
        raw_config["library_path"] = args.library
    if args.log_level:
        raw_config["log_level"] = args.log_level.upper()

    config_warnings = validate_config(raw_config)
    config = AppConfig.from_dict(raw_config)

    setup_logger(log_level=config.log_level, log_file=config.log_file)
    logger = get_logger("main")
    logger.info("%s v%s starting", APP_NAME, APP_VERSION)
    for warning in config_warnings:
        logger.warning("Config: %s", warning)

    if args.clear_cache:
        provider = None if args.clear_cache == "all" else args.clear_cache
        with Database(config.cache_path) as db:
            removed = ApiCacheRepository(db.connection).clear(provider)
        print(f"Removed {removed} cached API responses")
        return 0

    if config.library_path_resolved is None:
        logger.error("No library path configured. Set library_path or pass a folder.")
        return 2
    if PROVIDER_LASTFM in config.providers and not config.lastfm_api_key:
        logger.info("Last.fm API key not configured; Last.fm lookups are disabled.")

    db = Database(config.cache_path) if config.use_cache else None
    api_cache = None
    if db is not None:
        api_cache = ApiCacheRepository(db.connect())
        api_cache.prune()
        logger.info("API cache: %d entries", api_cache.count())

    try:
        processor = ReleaseProcessor.from_config(config, api_cache)
        root = processor.build_tree()

        failed = 0
        for release in list(root.releases()):
            if not args.no_collapse:
                release.collapse()
            if release.count == 0:
                logger.info("Skipping %s: no tracks", release.name)
                continue

            print(f"\n=== {release.name} ({release.count} tracks) ===")
            results = processor.resolve(release)
            print(results.describe(release.count))
            if not results.has_match:
                continue

            choice = 0 if args.first else _choose(len(results))
            if choice is None:
                continue

            report = processor.apply_selection(release, results[choice].metadata)
            print(report.summary())
            if not report.ok:
                failed += 1
    finally:
        if db is not None:
            db.close()

    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
