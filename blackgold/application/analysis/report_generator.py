# blackgold/application/analysis/report_generator.py
import logging
import json
import os
import time
from typing import Any, Dict, Optional


class ReportGenerator:
    """
    Writes analysis reports to JSON files.
    """
    def __init__(self, output_dir: str = "reports"):
        """
        Args:
            output_dir: Directory for storing reports
        """
        self.logger = logging.getLogger("application.analysis.report")
        self.output_dir = output_dir

        os.makedirs(output_dir, exist_ok=True)

    def write_report(self, kind: str, report, machine_info: Optional[Dict[str, Any]] = None) -> str:
        """
        Write one analysis report.

        Args:
            kind: Report kind used in the file name ("exhaustive", "montecarlo")
            report: Report object with to_dict()
            machine_info: Optional machine description to embed

        Returns:
            Path to the generated report file
        """
        data = {
            "generated_at": time.strftime("%Y-%m-%d %H:%M:%S"),
            "kind": kind,
            "machine": machine_info or {},
            "report": report.to_dict()
        }

        timestamp = time.strftime("%Y%m%d-%H%M%S")
        filename = f"{kind}_{report.machine_id}_{timestamp}.json"
        filepath = os.path.join(self.output_dir, filename)

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, default=_json_default)

        self.logger.info(f"{kind.capitalize()} report saved to {filepath}")
        return filepath

    def summarize(self, exhaustive=None, monte_carlo=None) -> Dict[str, Any]:
        """Side-by-side comparison of the exact and simulated figures."""
        summary: Dict[str, Any] = {}

        if exhaustive is not None:
            summary["exhaustive"] = {
                "rtp": exhaustive.rtp,
                "hit_frequency": exhaustive.hit_frequency,
                "target_rtp": exhaustive.target_rtp,
                "meets_target": exhaustive.meets_target,
                "cancelled": exhaustive.cancelled
            }

        if monte_carlo is not None:
            summary["monte_carlo"] = {
                "rounds": monte_carlo.rounds,
                "rtp": monte_carlo.rtp,
                "hit_frequency": monte_carlo.hit_frequency,
                "worst_drawdown_by_session_size": {
                    str(size): (d["risk_level"] if d else None)
                    for size, d in monte_carlo.worst_drawdown_by_session_size.items()
                },
                "cancelled": monte_carlo.cancelled
            }

        if exhaustive is not None and monte_carlo is not None and monte_carlo.rounds:
            summary["rtp_deviation"] = monte_carlo.rtp - exhaustive.rtp

        return summary


def _json_default(value):
    # numpy scalars and tuples from the domain layer
    if hasattr(value, "item"):
        return value.item()
    if isinstance(value, (tuple, set)):
        return list(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")
