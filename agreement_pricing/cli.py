#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Agreement pricing – CLI

Flow:
- Reads an agreement file (JSON or YAML) with one entry per service line.
- Resolves the effective rate config of every service from the admin backend
  (unless --offline), falling back to the local cache and static defaults.
- Replays the optional ``edits`` list (input changes, overrides, rate edits,
  contract lengths) the way a salesperson would in the form.
- Prints the Markdown quote report, and optionally writes the proposal JSON,
  a JSONL run trace and the override change log.
"""

import argparse
import json
import logging
import os
import sys
from importlib import metadata
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import yaml
from rich.console import Console
from rich.markdown import Markdown

from .config import (
    API_BASE_URL,
    API_TOKEN,
    CHANGE_LOG_FILE,
    CONFIG_CACHE_FILE,
    DEFAULT_CONTRACT_MONTHS,
    DEFAULT_CURRENCY,
    REQUEST_TIMEOUT,
    TRACE_ENABLED,
)
from .pricing.cache import load_config_cache, save_config_cache
from .pricing.config_api import ServiceConfigClient
from .reporting.format import render_report
from .service_models import default_registry
from .session import ProposalSession
from .utils.trace import JsonlChangeSink, build_trace_logger

console = Console()
DEBUG: bool = False


# --------------------------------------------------------------------
# Argument parsing
# --------------------------------------------------------------------
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="agreement-pricing",
        description=(
            "Cleaning agreement pricing engine\n\n"
            "Prices the service lines of an agreement file:\n"
            "- resolves per-service rates from the admin backend (or defaults)\n"
            "- converts per-visit prices to monthly, first-month and contract totals\n"
            "- applies manual overrides and logs every price change.\n"
        ),
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    quote = sub.add_parser(
        "quote",
        help="Price an agreement file.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    quote.add_argument("agreement", type=str, help="Agreement file (.json, .yaml or .yml).")
    quote.add_argument(
        "--offline",
        action="store_true",
        help="Do not contact the admin backend; use cached configs and static defaults.",
    )
    quote.add_argument(
        "--refresh",
        action="store_true",
        help="Force re-fetch of every service config; clears saved overrides and rate edits.",
    )
    quote.add_argument(
        "--api-url",
        type=str,
        default=API_BASE_URL,
        help="Admin backend base URL.",
    )
    quote.add_argument(
        "--contract-months",
        type=int,
        default=None,
        help="Global contract length (2-36). Overrides the agreement file.",
    )
    quote.add_argument(
        "--currency",
        type=str,
        default=None,
        help="Currency label used in the report.",
    )
    quote.add_argument(
        "--output-json",
        type=str,
        default=None,
        help="Write the proposal (summaries, breakdowns, totals) as JSON to this path.",
    )
    quote.add_argument(
        "--report",
        type=str,
        default=None,
        help="Write the Markdown report to this path as well as printing it.",
    )
    quote.add_argument(
        "--change-log",
        type=str,
        default=CHANGE_LOG_FILE or None,
        help="JSONL file receiving override change entries.",
    )
    quote.add_argument(
        "--cache-file",
        type=str,
        default=CONFIG_CACHE_FILE,
        help="Local cache of the last fetched service configs.",
    )
    quote.add_argument(
        "--trace",
        action="store_true",
        help="Force writing a run trace JSONL (enabled by default).",
    )
    quote.add_argument(
        "--trace-path",
        type=str,
        default=None,
        help="Override trace output path (default: runs/<agreement>/trace.jsonl)",
    )

    sub.add_parser("services", help="List the known service ids.")

    parser.add_argument(
        "--log-level",
        choices=["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"],
        default=os.getenv("AGREEMENT_PRICING_LOG_LEVEL", "WARNING"),
        help="Logging level for internal messages.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Verbose debug output (request URLs, resolved configs).",
    )

    return parser.parse_args(argv)


# --------------------------------------------------------------------
# Helpers
# --------------------------------------------------------------------
def _load_agreement(path: Path) -> Dict[str, Any]:
    raw = path.read_text(encoding="utf-8")
    if path.suffix.lower() in (".yaml", ".yml"):
        data = yaml.safe_load(raw) or {}
    else:
        data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError(f"Agreement file must contain a mapping: {path}")
    if not isinstance(data.get("services"), list):
        raise ValueError(f"Agreement file has no 'services' list: {path}")
    return data


def _apply_edit(proposal: ProposalSession, edit: Mapping[str, Any]) -> None:
    """Replay one form edit from the agreement's ``edits`` list."""
    value = edit.get("value")
    service_id = edit.get("service") or edit.get("service_id")
    if not service_id:
        if "contract_months" in edit:
            proposal.set_global_contract_months(edit["contract_months"])
            return
        raise ValueError(f"Edit without a service: {dict(edit)}")

    session = proposal.get(str(service_id))
    if "input" in edit:
        proposal.update_input(session.service_id, str(edit["input"]), value)
    elif "override" in edit:
        session.set_override(str(edit["override"]), value)
    elif "rate" in edit:
        session.set_rate(str(edit["rate"]), value)
    elif "contract_months" in edit:
        session.set_contract_months(edit["contract_months"])
    else:
        raise ValueError(f"Edit needs one of input/override/rate/contract_months: {dict(edit)}")


def _list_services() -> None:
    registry = default_registry()
    for sid in sorted(registry.service_ids(), key=str.lower):
        model = registry.require(sid)
        console.print(f"{sid:<22} {model.display_name}")


def main(argv: Optional[List[str]] = None) -> None:
    global DEBUG
    args = parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )
    logger = logging.getLogger("agreement_pricing")
    DEBUG = args.debug or (args.log_level.upper() == "DEBUG")
    logger.debug("CLI arguments: %s", args)

    if args.command == "services":
        _list_services()
        return

    agreement_path = Path(args.agreement)
    try:
        agreement = _load_agreement(agreement_path)
    except (OSError, ValueError, yaml.YAMLError) as ex:
        console.print(f"[red]Cannot read agreement: {ex}[/red]")
        sys.exit(1)

    agreement_id = str(agreement.get("agreement_id") or agreement.get("id") or agreement_path.stem)
    currency = args.currency or agreement.get("currency") or DEFAULT_CURRENCY
    trace_path = Path(args.trace_path) if args.trace_path else Path("runs") / agreement_id / "trace.jsonl"
    trace_logger = build_trace_logger(trace_path, enabled=TRACE_ENABLED or args.trace).bind(agreement_id=agreement_id)
    try:
        tool_version = metadata.version("agreement-pricing")
    except metadata.PackageNotFoundError:
        tool_version = "dev"

    trace_logger.log(
        "phase0_setup",
        {
            "tool_version": tool_version,
            "agreement": str(agreement_path),
            "offline": args.offline,
            "api_url": None if args.offline else args.api_url,
            "currency": currency,
        },
    )

    # ----- sessions -----
    months = args.contract_months or agreement.get("contract_months") or agreement.get("contractMonths")
    proposal = ProposalSession(global_contract_months=months or DEFAULT_CONTRACT_MONTHS)
    try:
        for entry in agreement["services"]:
            proposal.add_service(entry)
    except (KeyError, ValueError) as ex:
        console.print(f"[red]Invalid service entry: {ex}[/red]")
        sys.exit(1)

    # ----- configs -----
    load_config_cache(args.cache_file)
    client = None
    if not args.offline:
        client = ServiceConfigClient(base_url=args.api_url, token=API_TOKEN, timeout=REQUEST_TIMEOUT, debug=DEBUG)
    if args.refresh and client is not None:
        for session in proposal.services.values():
            session.refresh(client)
    else:
        proposal.load_configs(client)
    save_config_cache(args.cache_file)

    trace_logger.log(
        "phase1_configs",
        {
            sid: {"source": s.config.source, "missing": list(s.config.missing)}
            for sid, s in proposal.services.items()
        },
    )

    # ----- edits -----
    try:
        for edit in agreement.get("edits") or []:
            _apply_edit(proposal, edit)
    except (KeyError, ValueError) as ex:
        console.print(f"[red]Invalid edit: {ex}[/red]")
        sys.exit(1)

    result = proposal.to_dict(currency=currency)
    changes = [e.to_dict() for e in proposal.recorder.entries()]
    trace_logger.log("phase2_quote", {"totals": result["totals"], "changes": len(changes)})

    fallback = [s.service_id for s in proposal.active_sessions() if s.config.using_defaults]
    if fallback and not args.offline:
        console.print(f"[yellow]Default rates used for: {', '.join(fallback)}[/yellow]")

    report = render_report(result, changes)
    if report:
        console.print(Markdown(report))
    else:
        console.print("[yellow]No active services in this agreement.[/yellow]")

    if args.report:
        Path(args.report).write_text(report + "\n", encoding="utf-8")
        logger.info("Wrote report to %s", args.report)
    if args.output_json:
        result["changes"] = changes
        Path(args.output_json).write_text(json.dumps(result, indent=2, ensure_ascii=False), encoding="utf-8")
        logger.info("Wrote proposal JSON to %s", args.output_json)

    if args.change_log:
        sink = JsonlChangeSink(build_trace_logger(args.change_log), agreement_id=agreement_id)
        count = proposal.flush_changes(sink)
        logger.info("Logged %d price change(s) to %s", count, args.change_log)

    trace_logger.log("phase3_done", {"services": len(result["services"])})


if __name__ == "__main__":
    main()
