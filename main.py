#!/usr/bin/env python3
"""
Pod Error Monitor - namespace error ranking for Kubernetes clusters.

Detects CrashLoopBackOff, image pull failures, high restart counts, failed pods and
container creation errors, then ranks namespaces by a weighted severity score.
"""

import argparse
import dataclasses
import json
import logging
import os
import sys
from typing import Optional

# Configure logging
logging.basicConfig(
    level=getattr(logging, os.getenv("LOG_LEVEL", "WARNING").upper(), logging.WARNING),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    stream=sys.stderr,
)

#
# NOTE: Keep podmon imports that pull in kubernetes/fastapi lazy (inside functions) so
# `--help` and config errors stay fast.
#


def _apply_overrides(settings, *, kubeconfig: Optional[str]):  # type: ignore[no-untyped-def]
    if not kubeconfig:
        return settings
    k8s = dataclasses.replace(
        settings.kubernetes, kubeconfig_path=os.path.expanduser(kubeconfig), use_in_cluster=False
    )
    return dataclasses.replace(settings, kubernetes=k8s)


def display_errors(service, *, namespace: Optional[str], verbose: bool, dump_json: bool) -> None:  # type: ignore[no-untyped-def]
    from podmon.report import render_report

    result = service.refresh(namespace)
    if dump_json:
        print(json.dumps(result.model_dump(mode="json"), indent=2, sort_keys=False))
        return
    print(
        render_report(
            result.namespaces,
            result.errors,
            weights=service.monitoring.weights,
            context_name=result.context_name,
            namespace=namespace,
            verbose=verbose,
        )
    )


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Monitor Kubernetes pod errors across namespaces",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Monitor all namespaces
  python main.py

  # Monitor a specific namespace with a specific context
  python main.py -n kube-system -c minikube

  # Watch for changes and show error messages
  python main.py -w -V

  # Run the HTTP API for the dashboard
  python main.py --serve
        """,
    )
    parser.add_argument("--config", help="Path to configuration file (default: $POD_ERROR_MONITOR_CONFIG or config.yaml)")
    parser.add_argument("--kubeconfig", "-k", help="Path to kubeconfig file (overrides config)")
    parser.add_argument("--namespace", "-n", help="Filter by namespace (default: all namespaces)")
    parser.add_argument("--context", "-c", help="Switch to this Kubernetes context before listing")
    parser.add_argument("--watch", "-w", action="store_true", help="Re-render every refresh interval")
    parser.add_argument("--verbose", "-V", action="store_true", help="Show error messages")
    parser.add_argument("--dump-json", action="store_true", help="Print the cycle result as JSON instead of tables")
    parser.add_argument("--serve", action="store_true", help="Run the HTTP API server")
    parser.add_argument("--host", help="Server bind host (overrides config)")
    parser.add_argument("--port", type=int, help="Server listen port (overrides config)")

    args = parser.parse_args()

    from podmon.config import load_settings
    from podmon.core.errors import ConfigurationInvalid, MonitorError

    try:
        settings = _apply_overrides(load_settings(args.config), kubeconfig=args.kubeconfig)
    except ConfigurationInvalid as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        sys.exit(2)

    try:
        if args.serve:
            from podmon.api.server import run as run_server

            run_server(settings, host=args.host, port=args.port)
            return

        from podmon.service import build_service

        service = build_service(settings)
        if args.context:
            service.switch_context(args.context)

        if not args.watch:
            display_errors(service, namespace=args.namespace, verbose=args.verbose, dump_json=args.dump_json)
            return

        from podmon.poller import Poller

        def _render(_result) -> None:  # type: ignore[no-untyped-def]
            from podmon.report import render_report

            print("\033[2J\033[H", end="")
            print(
                render_report(
                    _result.namespaces,
                    _result.errors,
                    weights=settings.monitoring.weights,
                    context_name=_result.context_name,
                    namespace=args.namespace,
                    verbose=args.verbose,
                )
            )

        Poller(
            service, interval=settings.kubernetes.refresh_interval, namespace=args.namespace, on_result=_render
        ).run_forever()

    except MonitorError as e:
        print(f"Error ({e.code}): {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
