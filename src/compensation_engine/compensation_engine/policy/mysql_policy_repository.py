from __future__ import annotations

from datetime import date

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import LatenessTierRow, PackageDeductionRow, PackageSalaryRow, PolicySnapshot
from .repository import PolicyRepository


class MySQLPolicyRepository(PolicyRepository):
    """Reads the admin-managed policy tables.

    Policy is not retroactively time-varying: `as_of` is accepted for the
    contract but the current rows are returned.
    """

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def load_snapshot(self, *, as_of: date) -> PolicySnapshot:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT `key`, `value` FROM settings")
            settings = {str(r["key"]): str(r["value"]) if r["value"] is not None else "" for r in fetchall(cur)}

            cur.execute("SELECT package_name, salary_per_student FROM package_salaries ORDER BY package_name")
            salaries = [
                PackageSalaryRow(package_name=r["package_name"], salary_per_student=r["salary_per_student"])
                for r in fetchall(cur)
            ]

            cur.execute(
                """
                SELECT package_name, lateness_base_amount, absence_base_amount
                FROM package_deductions
                ORDER BY package_name
                """
            )
            deductions = [
                PackageDeductionRow(
                    package_name=r["package_name"],
                    lateness_base_amount=r["lateness_base_amount"],
                    absence_base_amount=r["absence_base_amount"],
                )
                for r in fetchall(cur)
            ]

            cur.execute(
                """
                SELECT tier, start_minute, end_minute, deduction_percent, excused_threshold
                FROM lateness_deduction_config
                ORDER BY tier ASC, start_minute ASC
                """
            )
            tiers = [
                LatenessTierRow(
                    tier=int(r["tier"]),
                    start_minute=r["start_minute"],
                    end_minute=r["end_minute"],
                    deduction_percent=r["deduction_percent"],
                    excused_threshold=r.get("excused_threshold"),
                )
                for r in fetchall(cur)
            ]

            cur.execute(
                """
                SELECT GREATEST(
                    COALESCE((SELECT MAX(updated_at) FROM settings), '1970-01-01'),
                    COALESCE((SELECT MAX(updated_at) FROM package_salaries), '1970-01-01'),
                    COALESCE((SELECT MAX(updated_at) FROM package_deductions), '1970-01-01'),
                    COALESCE((SELECT MAX(updated_at) FROM lateness_deduction_config), '1970-01-01')
                ) AS version
                """
            )
            r = fetchone(cur)
            updated = str(r["version"]) if r and r.get("version") is not None else "0"
            # Deleted rows do not move MAX(updated_at), so row counts are part of the version.
            version = f"{updated}|{len(settings)}|{len(salaries)}|{len(deductions)}|{len(tiers)}"

        return PolicySnapshot(
            version=version,
            settings=settings,
            package_salaries=salaries,
            package_deductions=deductions,
            lateness_tiers=tiers,
        )
