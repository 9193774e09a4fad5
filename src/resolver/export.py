"""Plan export to JSON and CSV files."""

import csv
import json
import logging

from .models import OrderedPlan, format_key

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "Package Name",
    "Version",
    "Port Revision",
    "Triplet",
    "Features",
    "Classification",
    "Request Type",
    "ABI",
    "Dependencies",
]


def plan_rows(plan: OrderedPlan):
    """Plan as CSV rows, header first."""
    rows = [CSV_HEADERS]
    for action in plan:
        rows.append([
            action.name,
            action.version.text,
            action.version.port_revision,
            action.triplet,
            ";".join(action.features),
            action.classification.value,
            action.request_type.value,
            action.abi,
            ";".join(format_key(key) for key in action.dependencies),
        ])
    return rows


def export_csv(plan: OrderedPlan, path: str) -> None:
    """Exports the plan to a CSV file.

    Args:
        plan: The ordered plan.
        path: File path to export the CSV.
    """
    with open(path, "w", newline="", encoding="utf-8") as file:
        csv.writer(file).writerows(plan_rows(plan))
    logger.info("CSV file has been successfully exported at: %s", path)


def export_json(plan: OrderedPlan, path: str) -> None:
    """Exports the plan to a JSON file.

    Args:
        plan: The ordered plan.
        path: File path to export the JSON.
    """
    with open(path, "w", encoding="utf-8") as file:
        json.dump(plan.to_dict(), file, ensure_ascii=False, indent=4, sort_keys=True)
    logger.info("JSON file has been successfully exported at: %s", path)
