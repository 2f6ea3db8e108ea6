from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path

from apa_checker.changelog import render_txt, write_json, write_txt
from apa_checker.errors import InvalidInput
from apa_checker.pipeline import validate_document
from apa_checker.upload import MAX_UPLOAD_BYTES, check_upload


def main(argv=None):
    ap = argparse.ArgumentParser(
        prog="apa-check",
        description="Check a Word document against APA 7 formatting rules"
    )
    ap.add_argument("input_docx", help="Path to input .docx")
    ap.add_argument("--rules", default=None, help="YAML rule pack overriding the bundled APA 7 defaults")
    ap.add_argument("--out", default=None, help="Also write <stem>.apa.json and <stem>.apa.txt to this directory")
    ap.add_argument("--format", default="json", choices=["json", "txt"], help="Report format printed to stdout")
    ap.add_argument(
        "--fail-under", type=int, default=None,
        help="Exit with status 1 when the score is below this value"
    )
    ap.add_argument(
        "--max-bytes", type=int, default=MAX_UPLOAD_BYTES,
        help=f"Reject documents larger than this (default: {MAX_UPLOAD_BYTES})"
    )
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = ap.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(message)s")

    path = Path(args.input_docx)
    if not path.is_file():
        ap.error(f"{args.input_docx} does not exist")
    try:
        check_upload(path.name, path.stat().st_size, max_bytes=args.max_bytes)
    except InvalidInput as e:
        ap.error(str(e))

    report = validate_document(path.read_bytes(), path.name, rules_path=args.rules)
    payload = report.to_dict()

    if args.out:
        out = Path(args.out)
        out.mkdir(parents=True, exist_ok=True)
        write_json(str(out / f"{path.stem}.apa.json"), payload)
        write_txt(str(out / f"{path.stem}.apa.txt"), payload)

    if args.format == "txt":
        print(render_txt(payload))
    else:
        print(json.dumps(payload, indent=2, ensure_ascii=False))

    if args.fail_under is not None and report.score < args.fail_under:
        sys.exit(1)


if __name__ == "__main__":
    main()
