#!/usr/bin/env python3
"""
pokit - gettext PO/POT toolkit

Commands:
    check   - Parse PO/POT files and report counts or the first error
    merge   - Merge a POT template into a PO file (or a whole directory)
    plural  - Show plural forms for a locale

Results are printed as JSON on stdout; errors as JSON on stderr with
exit status 1. A file is only written when its merge succeeded.

Example:
    pokit merge priv/gettext/it/LC_MESSAGES/default.po priv/gettext/default.pot
    pokit merge priv/gettext --locale it
    pokit plural pl 1 2 5
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from .config import ON_OBSOLETE_CHOICES, MergePolicy, load_config
from .errors import PokitError
from .merger import merge, new_from_template
from .messages import MessageCollection
from .plural import plural_count, plural_index
from .po import BOM_POLICIES, dump, parse_file, parse_file_or_raise

logger = logging.getLogger(__name__)


def _policy_from_args(args) -> MergePolicy:
    policy = load_config(args.config) if args.config else MergePolicy()
    return policy.with_overrides(
        fuzzy=False if args.no_fuzzy else None,
        fuzzy_threshold=args.fuzzy_threshold,
        on_obsolete=args.on_obsolete,
        plural_forms=args.plural_forms,
        store_previous_message_on_fuzzy_match=True if args.store_previous else None,
        write_reference_line_numbers=False if args.no_line_numbers else None,
        bom=args.bom,
    )


def _locale_from_path(path: Path) -> Optional[str]:
    """Locale directory of a <locale>/LC_MESSAGES/<domain>.po path."""
    if path.parent.name == "LC_MESSAGES":
        return path.parent.parent.name or None
    return None


def _merge_one(po_path: Path, template: MessageCollection, locale: Optional[str], policy: MergePolicy) -> dict:
    """Merge ``template`` into ``po_path``, creating it when missing."""
    if po_path.exists():
        old = parse_file_or_raise(po_path, bom=policy.bom)
        locale = locale or old.header("Language") or _locale_from_path(po_path)
        merged, stats = merge(old, template, locale, policy)
        action = "merged"
    else:
        locale = locale or _locale_from_path(po_path)
        if not locale:
            raise PokitError(f"cannot tell the locale of {po_path}, pass --locale")
        merged, stats = new_from_template(template, locale, policy)
        action = "created"

    text = dump(merged, policy.reference_width)
    return {"file": str(po_path), "action": action, "locale": locale, "stats": stats.to_dict(), "_text": text}


def _write_all(results: list[dict]):
    for result in results:
        path = Path(result["file"])
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(result.pop("_text"), encoding="utf-8")


def _merge_directory(directory: Path, args, policy: MergePolicy) -> dict:
    templates = sorted(directory.glob("*.pot"))
    if not templates:
        raise PokitError(f"no .pot files found in {directory}")

    if args.locale:
        locales = [args.locale]
    else:
        locales = sorted(
            child.name for child in directory.iterdir()
            if (child / "LC_MESSAGES").is_dir()
        )

    domains = {template.stem for template in templates}
    parsed = [(template, parse_file_or_raise(template, bom=policy.bom)) for template in templates]

    results = []
    for locale in locales:
        messages_dir = directory / locale / "LC_MESSAGES"
        for po_path in sorted(messages_dir.glob("*.po")):
            if po_path.stem not in domains:
                logger.warning("PO file %s has no matching POT file in %s", po_path, directory)
        for template_path, template in parsed:
            po_path = messages_dir / f"{template_path.stem}.po"
            results.append(_merge_one(po_path, template, locale, policy))

    # nothing is written unless every merge succeeded
    _write_all(results)
    return {"status": "ok", "files": results}


def cmd_merge(args) -> dict:
    """Merge a POT file into a PO file, or every POT of a directory into its locales."""
    policy = _policy_from_args(args)
    target = Path(args.paths[0])

    if len(args.paths) == 1:
        if not target.is_dir():
            raise PokitError(f"{target} is not a directory; pass a PO file and a POT file")
        return _merge_directory(target, args, policy)

    if len(args.paths) != 2:
        raise PokitError("merge takes a directory, or a PO file and a POT file")

    template = parse_file_or_raise(args.paths[1], bom=policy.bom)
    output = Path(args.output) if args.output else target
    result = _merge_one(target, template, args.locale, policy)
    result["file"] = str(output)
    _write_all([result])
    return {"status": "ok", **result}


def cmd_check(args) -> dict:
    """Parse each file and report counts or the first error."""
    results = []
    for path in args.files:
        collection, error = parse_file(path, bom=args.bom)
        if error is not None:
            results.append({"file": path, "status": "error", "error": error.to_dict()})
        else:
            results.append({"file": path, "status": "ok", **collection.get_stats()})
    failed = sum(1 for result in results if result["status"] == "error")
    return {
        "status": "error" if failed else "ok",
        "files": results,
        "summary": f"{len(results) - failed} of {len(results)} file(s) parsed cleanly",
    }


def cmd_plural(args) -> dict:
    """Plural form count and the slot chosen for each number."""
    return {
        "status": "ok",
        "locale": args.locale,
        "nplurals": plural_count(args.locale, args.header),
        "indices": {str(n): plural_index(args.locale, args.header, n) for n in args.numbers},
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pokit",
        description="pokit - gettext PO/POT toolkit",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Check files for syntax errors and duplicates
  pokit check priv/gettext/default.pot priv/gettext/it/LC_MESSAGES/default.po

  # Merge a template into one PO file
  pokit merge it/LC_MESSAGES/default.po default.pot --locale it

  # Merge every template of a directory into every locale
  pokit merge priv/gettext --on-obsolete mark_as_obsolete

  # Plural slots for some counts
  pokit plural ru 1 2 5 21
        """,
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Log progress to stderr")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # check command
    check_parser = subparsers.add_parser("check", help="Parse PO/POT files and report problems")
    check_parser.add_argument("files", nargs="+", help="PO/POT files")
    check_parser.add_argument("--bom", choices=BOM_POLICIES, default="warn", help="Byte order mark handling (default: warn)")

    # merge command
    merge_parser = subparsers.add_parser("merge", help="Merge POT templates into PO files")
    merge_parser.add_argument("paths", nargs="+", help="PO file and POT file, or a directory")
    merge_parser.add_argument("--locale", "-l", help="Locale (default: from the Language header or path)")
    merge_parser.add_argument("--output", "-o", help="Output file (default: overwrite the PO file)")
    merge_parser.add_argument("--config", "-c", help="YAML file with merge options")
    merge_parser.add_argument("--no-fuzzy", action="store_true", help="Disable fuzzy matching")
    merge_parser.add_argument("--fuzzy-threshold", type=float, help="Minimum Jaro distance for fuzzy matches (default: 0.8)")
    merge_parser.add_argument("--on-obsolete", choices=ON_OBSOLETE_CHOICES, help="What to do with messages no longer in the template")
    merge_parser.add_argument("--plural-forms", type=int, help="Number of plural forms (default: from header or locale)")
    merge_parser.add_argument("--store-previous", action="store_true", help="Write #| lines for fuzzy matches")
    merge_parser.add_argument("--no-line-numbers", action="store_true", help="Write references without line numbers")
    merge_parser.add_argument("--bom", choices=BOM_POLICIES, help="Byte order mark handling (default: warn)")

    # plural command
    plural_parser = subparsers.add_parser("plural", help="Show plural forms for a locale")
    plural_parser.add_argument("locale", help="Locale, e.g. pt_BR")
    plural_parser.add_argument("numbers", nargs="*", type=int, help="Counts to resolve")
    plural_parser.add_argument("--header", help="Plural-Forms header value overriding the locale rule")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    try:
        if args.command == "check":
            result = cmd_check(args)
        elif args.command == "merge":
            result = cmd_merge(args)
        else:
            result = cmd_plural(args)
    except PokitError as e:
        print(json.dumps({"status": "error", **e.to_dict()}), file=sys.stderr)
        sys.exit(1)
    except (OSError, ValueError) as e:
        print(json.dumps({
            "status": "error",
            "error": str(e),
            "error_type": type(e).__name__,
        }), file=sys.stderr)
        sys.exit(1)

    print(json.dumps(result, indent=2, ensure_ascii=False))
    if result["status"] == "error":
        sys.exit(1)


if __name__ == "__main__":
    main()
