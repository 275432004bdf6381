#!/usr/bin/env python3
"""Mind map CLI - drives the mind map backend and prints JSON."""

import argparse
import json
import sys

import httpx

from mindmap.config import configure_logging, get_settings

settings = get_settings()


def _json_out(data, code=0):
    print(json.dumps(data))
    sys.exit(code)


def _api_request(method, endpoint, data=None, params=None):
    """Make a request to the mind map backend."""
    url = f"{settings.api_base}{endpoint}"

    if params:
        params = {k: v for k, v in params.items() if v is not None}

    try:
        with httpx.Client(timeout=settings.request_timeout) as client:
            response = client.request(method, url, json=data, params=params or None)
    except httpx.RequestError as e:
        _json_out({"status": "error", "error": f"Connection failed: {e}. Is the mind map backend running?"}, 1)

    if response.status_code >= 400:
        try:
            detail = response.json().get("detail", "Unknown error")
        except ValueError:
            detail = response.text
        _json_out({"status": "error", "error": f"API error ({response.status_code}): {detail}"}, 1)

    return response.json()


# ── Service ──────────────────────────────────────────────────────────────────

def cmd_serve(args):
    import uvicorn

    configure_logging(settings.log_level)
    uvicorn.run("mindmap.backend.main:app", host=args.host, port=args.port)


# ── Mind map ─────────────────────────────────────────────────────────────────

def cmd_current(args):
    _json_out(_api_request("GET", "/diagram"))


def cmd_new(args):
    _json_out(_api_request("POST", "/diagram/new"))


def cmd_save(args):
    _json_out(_api_request("POST", "/diagram/save", data={"name": args.name}))


def cmd_load(args):
    _json_out(_api_request("POST", "/diagram/load", data={"diagram_id": args.diagram_id}))


def cmd_list(args):
    _json_out(_api_request("GET", "/diagrams"))


def cmd_validate(args):
    _json_out(_api_request("GET", "/diagram/validate"))


# ── Nodes ────────────────────────────────────────────────────────────────────

def cmd_add_child(args):
    _json_out(_api_request(
        "POST", f"/nodes/{args.parent_id}/children",
        data={"position": {"x": args.x, "y": args.y}},
    ))


def cmd_rename(args):
    _json_out(_api_request("PATCH", f"/nodes/{args.node_id}", data={"label": args.label}))


def cmd_remove(args):
    params = {"cascade": "true"} if args.cascade else None
    _json_out(_api_request("DELETE", f"/nodes/{args.node_id}", params=params))


def cmd_move(args):
    change = {"type": "position", "id": args.node_id, "position": {"x": args.x, "y": args.y}}
    _json_out(_api_request("POST", "/changes", data=[change]))


# ── Main ─────────────────────────────────────────────────────────────────────

def build_parser():
    parser = argparse.ArgumentParser(description="Mind map CLI")
    sub = parser.add_subparsers(dest="command", required=True)

    # Service
    p = sub.add_parser("serve")
    p.add_argument("--host", default=settings.host)
    p.add_argument("--port", type=int, default=settings.port)

    # Mind map
    sub.add_parser("current")
    sub.add_parser("new")

    p = sub.add_parser("save")
    p.add_argument("--name", default=None)

    p = sub.add_parser("load")
    p.add_argument("diagram_id")

    sub.add_parser("list")
    sub.add_parser("validate")

    # Nodes
    p = sub.add_parser("add-child")
    p.add_argument("parent_id")
    p.add_argument("--x", type=float, required=True)
    p.add_argument("--y", type=float, required=True)

    p = sub.add_parser("rename")
    p.add_argument("node_id")
    p.add_argument("label")

    p = sub.add_parser("remove")
    p.add_argument("node_id")
    p.add_argument("--cascade", action="store_true")

    p = sub.add_parser("move")
    p.add_argument("node_id")
    p.add_argument("--x", type=float, required=True)
    p.add_argument("--y", type=float, required=True)

    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)

    cmd_map = {
        "serve": cmd_serve,
        "current": cmd_current,
        "new": cmd_new,
        "save": cmd_save,
        "load": cmd_load,
        "list": cmd_list,
        "validate": cmd_validate,
        "add-child": cmd_add_child,
        "rename": cmd_rename,
        "remove": cmd_remove,
        "move": cmd_move,
    }
    cmd_map[args.command](args)


if __name__ == "__main__":
    main()
