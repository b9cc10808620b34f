"""CLI entry point: python3 -m headerswap

Modes:
  --command/--project/--args  Single-shot command
  --sidecar                   Persistent stdin/stdout JSON-RPC loop
"""

import argparse
import json
import logging
import sys
import traceback

from .commands import Session
from .host import PromptChoicePresenter


def main():
    parser = argparse.ArgumentParser(description="Swap between header and source files")
    parser.add_argument("--sidecar", action="store_true",
                        help="Run as persistent sidecar (stdin/stdout JSON-RPC)")
    parser.add_argument("--command", help="Command to run (swap, pick, forget, stats)")
    parser.add_argument("--project", help="Workspace root path")
    parser.add_argument("--args", default="{}", help="JSON-encoded arguments")
    parser.add_argument("--interactive", action="store_true",
                        help="Prompt on the terminal when several candidates match")
    parser.add_argument("--editor", help="Editor command to open the swap file with")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    args = parser.parse_args()

    logging.basicConfig(
        stream=sys.stderr,
        level=args.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    if args.sidecar:
        _run_sidecar(Session(editor=args.editor))
    else:
        if not args.command or not args.project:
            parser.error("--command and --project are required (or use --sidecar)")
        presenter = PromptChoicePresenter() if args.interactive else None
        _run_single(args, Session(editor=args.editor, presenter=presenter))


def _run_single(args, session: Session):
    """Single-shot mode."""
    try:
        extra_args = json.loads(args.args)
    except json.JSONDecodeError as e:
        _error_exit("InvalidArgs", f"Failed to parse --args JSON: {e}")

    try:
        result = session.dispatch(args.command, args.project, extra_args)
        json.dump(result, sys.stdout)
        sys.stdout.write("\n")
    except Exception as e:
        _error_exit(type(e).__name__, str(e))

    if result.get("status") == "open_failed":
        sys.stderr.write(result["message"] + "\n")
        sys.exit(1)


def _run_sidecar(session: Session):
    """Persistent sidecar: read JSON requests from stdin, write responses to stdout."""
    # Signal readiness
    sys.stdout.write('{"status":"ready"}\n')
    sys.stdout.flush()

    for line in sys.stdin:
        line = line.strip()
        if not line:
            continue

        try:
            req = json.loads(line)
        except json.JSONDecodeError as e:
            resp = {"id": None, "error": {"type": "InvalidJSON", "message": str(e)}}
            sys.stdout.write(json.dumps(resp) + "\n")
            sys.stdout.flush()
            continue

        if not isinstance(req, dict):
            resp = {"id": None, "error": {"type": "InvalidRequest", "message": "request must be a JSON object"}}
            sys.stdout.write(json.dumps(resp) + "\n")
            sys.stdout.flush()
            continue

        req_id = req.get("id")
        command = req.get("command", "")
        project = req.get("project", "")
        extra_args = req.get("args", {})

        try:
            result = session.dispatch(command, project, extra_args)
            resp = {"id": req_id, "result": result}
        except Exception as e:
            resp = {"id": req_id, "error": {"type": type(e).__name__, "message": str(e)}}

        sys.stdout.write(json.dumps(resp) + "\n")
        sys.stdout.flush()


def _error_exit(error_type: str, message: str):
    """Write structured error to stderr and exit."""
    error = {
        "error": error_type,
        "message": message,
        "traceback": traceback.format_exc(),
    }
    json.dump(error, sys.stderr)
    sys.stderr.write("\n")
    sys.exit(1)


if __name__ == "__main__":
    main()
