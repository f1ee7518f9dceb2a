"""
Demonstration of evaluating the sample stacks.

This script loads the control and compliant stacks, checks them against
the default baselines and prints a Markdown report for each.
"""

from pathlib import Path

from compliance_engine import ServiceContainer, Settings
from compliance_engine.models import ReportFormat

STACKS_DIR = Path(__file__).parent / "stacks"


def main():
    """Run the sample stack demonstration."""
    container = ServiceContainer(settings=Settings(max_workers=4))
    container.initialize()

    for name in ("control_stack.json", "compliant_stack.json"):
        print("=" * 60)
        print(f"Evaluating {name}")
        print("=" * 60)
        print()

        graph = container.graph_service.load_graph(STACKS_DIR / name)
        report = container.compliance_service.check_compliance(graph)

        print(container.report_service.format_report(report, ReportFormat.MARKDOWN))
        for summary in report.baselines:
            print(f"  {summary.baseline}: {summary.status.value}")
        print()


if __name__ == "__main__":
    main()
