from __future__ import annotations

import asyncio

from chatrelay.apps.runtime_support import build_relay_runtime
from chatrelay.cli import base_parser
from chatrelay.core.config.loader import load_app_config
from chatrelay.core.providers.base import Message, Role
from chatrelay.core.runtime.errors import AllProvidersFailedError, ConfigurationError


def _print_attempts(attempts) -> None:
    for a in attempts:
        print(f"- {a.provider}/{a.model}: outcome={a.outcome.value} status={a.status_code} latency_ms={a.latency_ms} detail={a.detail}")


def main() -> int:
    parser = base_parser("chatrelay-diag", "chatrelay diagnostics CLI")
    parser.add_argument("--config", default=None, help="Config file path")
    parser.add_argument("--validate-config", action="store_true")
    parser.add_argument("--providers", action="store_true", help="Show provider status rows")
    parser.add_argument("--candidates", action="store_true", help="Show the flattened fallback chain")
    parser.add_argument("--probe", default=None, metavar="TEXT", help="Send TEXT through the fallback chain")
    args = parser.parse_args()

    try:
        cfg = load_app_config(instance_path=args.config)
    except Exception as exc:  # noqa: BLE001
        print(f"config-invalid error={exc}")
        return 1

    did_work = False
    if args.validate_config:
        did_work = True
        print(
            f"config-valid instance={cfg.instance.name} env={cfg.environment} "
            f"timeout_seconds={cfg.runtime.provider_timeout_seconds}"
        )

    if not (args.providers or args.candidates or args.probe):
        if not did_work:
            parser.print_help()
        return 0

    runtime = build_relay_runtime(cfg=cfg)

    if args.providers:
        print("provider-status:")
        for row in runtime.provider_rows:
            print(f"- {row['name']}: enabled={row['enabled']} reason={row['reason']} models={','.join(row['models'])}")

    if args.candidates:
        print("fallback-chain:")
        for position, (provider, model) in enumerate(runtime.sequencer.candidates(), start=1):
            print(f"{position}. {provider}/{model}")

    if args.probe:
        conversation = [Message(role=Role.USER, content=args.probe)]
        try:
            result = asyncio.run(runtime.sequencer.run(conversation))
        except ConfigurationError as exc:
            print(f"probe-unconfigured error={exc}")
            return 2
        except AllProvidersFailedError as exc:
            print("probe-failed:")
            _print_attempts(exc.attempts)
            return 1
        print(f"probe-ok provider={result.response.provider} model={result.response.model}")
        _print_attempts(result.attempts)
        print(result.response.content)

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
