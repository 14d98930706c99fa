"""Command that prints the execution plan of a manifest."""

from __future__ import annotations

import argparse
import sys

from dolly.parser import Manifest, PuppetError
from dolly.plan import Plan, PlanError, parse_puppet_manifest


def render_plan(plan: Plan) -> str:
    """Render the plan as Graphviz text followed by an execution listing."""
    out = [plan.dot(), "\n", "# Execution plan debug:"]
    weights = plan.sorted_weights()
    for index, node in weights.items():
        out.append(f"# {node.id()}")
        out.extend(
            f" ({relation} {weights[target].id()})"
            for target, relation in plan.edges(index)
        )
        out.append("\n")
    return "".join(out)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="dolly", description="Print the execution plan of a manifest."
    )
    parser.add_argument(
        "manifest", nargs="?", default="-", help="manifest file, or - for stdin"
    )
    args = parser.parse_args(argv)
    try:
        if args.manifest == "-":
            text = sys.stdin.read()
        else:
            with open(args.manifest, "rb") as handle:
                text = handle.read().decode("utf-8", errors="replace")
        plan = parse_puppet_manifest(Manifest.from_str(text))
    except (OSError, PuppetError, PlanError, ValueError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    sys.stdout.write(render_plan(plan))
    return 0


if __name__ == "__main__":
    sys.exit(main())