#!/usr/bin/env python3
"""
JobFiller command line.

Usage:
    python3 -m jobfiller.cli import resume.txt --name main      # text or .json
    python3 -m jobfiller.cli list
    python3 -m jobfiller.cli analyze https://jobs.example.com/apply
    python3 -m jobfiller.cli fill https://jobs.example.com/apply --headed
    python3 -m jobfiller.cli settings --autofill-on-load on --autofill-delay 1500
    python3 -m jobfiller.cli open https://jobs.example.com/apply      # autofill on load
    python3 -m jobfiller.cli serve --port 8000
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import uvicorn
from playwright.sync_api import Error as PlaywrightError, sync_playwright

from .browser.playwright_dom import PlaywrightDocument
from .service import JobFiller


def cmd_import(service: JobFiller, args) -> int:
    path = Path(args.file)
    if not path.exists():
        print(f"❌ File not found: {path}")
        return 1
    text = path.read_text(encoding="utf-8")
    name = args.name or path.stem

    if path.suffix.lower() == ".json":
        result = service.import_resume_json(name, text)
    else:
        result = service.import_resume_text(name, text)

    if not result["success"]:
        print(f"❌ {result['message']}")
        return 1
    print(f"✅ Imported résumé '{name}'")
    if result.get("message"):
        print(f"   ⚠️ {result['message']}")
    return 0


def cmd_list(service: JobFiller, args) -> int:
    resumes = service.list_resumes()["resumes"]
    if not resumes:
        print("No résumés stored")
        return 0
    for r in resumes:
        marker = "*" if r["active"] else " "
        print(f" {marker} {r['name']:30s} {r['updatedAt']}")
    return 0


def _with_page(args, action):
    with sync_playwright() as p:
        browser = p.chromium.launch(headless=not args.headed)
        page = browser.new_page()
        try:
            page.goto(args.url, timeout=args.timeout, wait_until="networkidle")
            return action(PlaywrightDocument(page))
        finally:
            browser.close()


def cmd_analyze(service: JobFiller, args) -> int:
    try:
        result = _with_page(args, service.analyze_page)
    except PlaywrightError as e:
        print(f"❌ Could not load {args.url}: {e}")
        return 1
    if not result["success"]:
        print(f"❌ {result['message']}")
        return 1

    print(f"🔍 {result['domain']}: {len(result['fields'])} fields")
    for field in result["fields"].values():
        mapped = field["mapped"] or "-"
        print(f"  {field['type']:10s} {field['label'][:40]:40s} -> {mapped}")
    if args.json:
        print(json.dumps(result, indent=2, ensure_ascii=False))
    return 0


def _print_fill_result(result: dict) -> int:
    if "total" not in result:
        print(f"❌ {result['message']}")
        return 1
    icon = "✅" if result["success"] else "⚠️"
    print(
        f"{icon} Filled {result['filled']}/{result['total']} fields "
        f"({result['skipped']} skipped, {result['failed']} failed)"
    )
    if result.get("message"):
        print(f"   {result['message']}")
    return 0 if result["success"] else 1


def cmd_fill(service: JobFiller, args) -> int:
    try:
        result = _with_page(args, lambda doc: service.fill_form(doc, resume_name=args.resume))
    except PlaywrightError as e:
        print(f"❌ Could not load {args.url}: {e}")
        return 1
    return _print_fill_result(result)


def cmd_open(service: JobFiller, args) -> int:
    """Load a page and fill it only if autofill on load is enabled."""
    try:
        result = _with_page(args, service.autofill_on_load)
    except PlaywrightError as e:
        print(f"❌ Could not load {args.url}: {e}")
        return 1
    if result is None:
        print("ℹ️ Autofill on load is off or no résumé is active")
        return 0
    return _print_fill_result(result)


def cmd_settings(service: JobFiller, args) -> int:
    updates = {}
    if args.autofill_on_load is not None:
        updates["autofillOnLoad"] = args.autofill_on_load == "on"
    if args.autofill_delay is not None:
        updates["autofillDelay"] = args.autofill_delay
    result = service.save_settings(updates) if updates else service.get_settings()
    if not result["success"]:
        print(f"❌ {result['message']}")
        return 1
    for key, value in result["settings"].items():
        print(f"  {key:20s} {value}")
    return 0


def cmd_serve(service: JobFiller, args) -> int:
    uvicorn.run("jobfiller.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Fill job application forms from a stored résumé")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("import", help="Import a résumé (.json or plain text)")
    p.add_argument("file")
    p.add_argument("--name", default="", help="Résumé name (default: file name)")
    p.set_defaults(func=cmd_import)

    p = sub.add_parser("list", help="List stored résumés")
    p.set_defaults(func=cmd_list)

    for name, func, help_text in (
        ("analyze", cmd_analyze, "Show the fields found on a page"),
        ("fill", cmd_fill, "Fill the form on a page"),
        ("open", cmd_open, "Load a page and autofill it if enabled in settings"),
    ):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("url")
        p.add_argument("--headed", action="store_true", help="Show the browser window")
        p.add_argument("--timeout", type=int, default=30000, help="Page load timeout (ms)")
        if name == "fill":
            p.add_argument("--resume", default=None, help="Résumé name (default: active)")
        elif name == "analyze":
            p.add_argument("--json", action="store_true", help="Also print raw JSON")
        p.set_defaults(func=func)

    p = sub.add_parser("settings", help="Show or change settings")
    p.add_argument("--autofill-on-load", choices=["on", "off"], default=None)
    p.add_argument("--autofill-delay", type=int, default=None, help="Delay before autofill (ms)")
    p.set_defaults(func=cmd_settings)

    p = sub.add_parser("serve", help="Run the HTTP API")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--reload", action="store_true")
    p.set_defaults(func=cmd_serve)

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return args.func(JobFiller(), args)


if __name__ == "__main__":
    sys.exit(main())
