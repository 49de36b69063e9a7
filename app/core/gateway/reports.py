from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from app.core.gateway.coercion import coerce_value
from app.core.gateway.exceptions import UnknownReport
from app.core.gateway.mutations import Statement

# -----------------------------------------------------------------------------
# REPORTS MODULE
# Purpose: pick one of several predefined SQL templates per report, based on
# which optional filters the caller supplied, and bind only what it references.
# Why: grouping changes with the filters (month grouping only once the year is
# pinned), so each combination is its own template rather than optional clauses.
# -----------------------------------------------------------------------------


class ReportKind(str, Enum):
    """Closed set of reports; add a member and a REPORTS entry to add one."""

    MONTHLY_PRODUCTION = "monthly-production"
    SALES_BY_MINERAL = "sales-by-mineral"
    RESERVES_STATUS = "reserves-status"
    INFRASTRUCTURE_REPORT = "infrastructure-report"
    TEAM_EFFICIENCY = "team-efficiency"
    BUYER_STATISTICS = "buyer-statistics"
    DISCOVERY_TIMELINE = "discovery-timeline"
    EQUIPMENT_DAMAGE = "equipment-damage"


def wrap_wildcards(value: str) -> str:
    return f"%{value}%"


@dataclass(frozen=True)
class ReportTemplate:
    """
    SQL text plus the exact parameter names it references.

    converters maps a parameter name to a function applied to the filter value
    before binding; parameters without one are bound as given.
    """

    sql: str
    params: Tuple[str, ...] = ()
    converters: Mapping[str, Callable[[Any], Any]] = field(default_factory=dict)

    def bind(self, filters: Mapping[str, Any]) -> Dict[str, Any]:
        bound = {}
        for name in self.params:
            value = filters[name]
            convert = self.converters.get(name)
            bound[name] = convert(value) if convert else value
        return bound


@dataclass(frozen=True)
class ReportVariant:
    """A template plus the filters that must all be present to choose it."""

    requires: Tuple[str, ...]
    template: ReportTemplate


# =========================
# Shared SQL fragments
# =========================
_SHIFTS_BY_DEPOSIT = """
    FROM work_shifts ws
    JOIN ore_deposits od ON ws.ore_deposit_id = od.id
    LEFT JOIN shift_production sp ON ws.id = sp.shift_id"""

_TEAM_SHIFTS = """
    FROM mining_teams mt
    JOIN teams t ON mt.team_id = t.id
    JOIN team_names tn ON t.name_id = tn.id
    JOIN work_shifts ws ON mt.id = ws.mining_team_id
    LEFT JOIN shift_production sp ON ws.id = sp.shift_id"""

_TEAM_METRICS = """
        COUNT(DISTINCT ws.shift_date) AS working_days,
        COALESCE(SUM(sp.tons_of_ore), 0) AS total_production,
        COALESCE(ROUND(SUM(sp.tons_of_ore) / NULLIF(COUNT(DISTINCT ws.shift_date), 0), 2), 0) AS avg_daily_production,
        COALESCE(ROUND(AVG(sp.tons_of_ore), 2), 0) AS avg_shift_production,
        SUM(CASE WHEN sp.equipment_damaged THEN 1 ELSE 0 END) AS incidents_count"""

_SALES_COLUMNS = """
    SELECT
        m.name AS mineral_name,
        COUNT(s.id) AS sales_count,
        COALESCE(SUM(s.sold_tons), 0) AS total_sold_tons,
        COALESCE(ROUND(AVG(s.sale_price_per_ton), 2), 0) AS avg_price,
        COALESCE(SUM(s.sold_tons * s.sale_price_per_ton), 0) AS total_revenue,
        MIN(s.sale_date) AS first_sale_date,
        MAX(s.sale_date) AS last_sale_date
    FROM sales_to_companies s
    JOIN minerals m ON s.mineral_id = m.id"""

_RESERVES_COLUMNS = """
    SELECT
        od.name AS deposit_name,
        m.name AS mineral_name,
        r.absolute_volume,
        r.is_confirmed
    FROM reserves r
    JOIN ore_deposits od ON r.ore_deposit_id = od.id
    JOIN minerals m ON r.mineral_id = m.id"""

_INFRASTRUCTURE_COLUMNS = """
    SELECT
        od.name AS deposit_name,
        od.status,
        od.has_railroad,
        od.has_power_supply,
        od.nearby_settlement
    FROM ore_deposits od"""

_BUYER_COLUMNS = """
    SELECT
        bc.name AS company_name,
        bc.contact_name,
        bc.contact_phone,
        COUNT(s.id) AS purchase_count,
        COALESCE(SUM(s.sold_tons), 0) AS total_purchased_tons,
        COALESCE(SUM(s.sold_tons * s.sale_price_per_ton), 0) AS total_spent,
        COALESCE(ROUND(AVG(s.sale_price_per_ton), 2), 0) AS avg_price_paid,
        MIN(s.sale_date) AS first_purchase_date,
        MAX(s.sale_date) AS last_purchase_date
    FROM buyers_companies bc
    LEFT JOIN sales_to_companies s ON bc.id = s.buyer_id"""

_BUYER_GROUPING = """
    GROUP BY bc.id, bc.name, bc.contact_name, bc.contact_phone
    ORDER BY total_spent DESC NULLS LAST"""

_DISCOVERY_COLUMNS = """
    SELECT
        od.discovery_year,
        COUNT(*) AS deposits_discovered,
        STRING_AGG(od.name, ', ') AS deposit_names
    FROM ore_deposits od"""

_DAMAGE_COLUMNS = """
    SELECT
        ws.shift_date,
        od.name AS deposit_name,
        tn.name AS team_name,
        mt.foreman_name,
        sp.tons_of_ore,
        sp.equipment_damaged,
        sp.notes AS damage_description
    FROM shift_production sp
    JOIN work_shifts ws ON sp.shift_id = ws.id
    JOIN ore_deposits od ON ws.ore_deposit_id = od.id
    JOIN mining_teams mt ON ws.mining_team_id = mt.id
    JOIN teams t ON mt.team_id = t.id
    JOIN team_names tn ON t.name_id = tn.id
    WHERE sp.equipment_damaged = true"""

_DATE_RANGE = ("from", "to")
_YEAR_MONTH = ("year", "month")


# =========================
# Branch table
# =========================
REPORTS: Dict[ReportKind, List[ReportVariant]] = {
    ReportKind.MONTHLY_PRODUCTION: [
        # Year and month pinned: one row per deposit and mineral
        ReportVariant(
            requires=_YEAR_MONTH,
            template=ReportTemplate(
                sql=f"""
    SELECT
        od.name AS deposit_name,
        m.name AS mineral_name,
        COUNT(ws.id) AS shifts_count,
        COALESCE(SUM(sp.tons_of_ore), 0) AS total_production,
        COALESCE(ROUND(AVG(sp.tons_of_ore), 2), 0) AS avg_production_per_shift
    {_SHIFTS_BY_DEPOSIT}
    LEFT JOIN minerals m ON sp.mineral_id = m.id
    WHERE EXTRACT(YEAR FROM ws.shift_date) = :year
      AND EXTRACT(MONTH FROM ws.shift_date) = :month
    GROUP BY od.name, m.name
    ORDER BY total_production DESC""",
                params=_YEAR_MONTH,
            ),
        ),
        # Year only: one row per deposit and month
        ReportVariant(
            requires=("year",),
            template=ReportTemplate(
                sql=f"""
    SELECT
        od.name AS deposit_name,
        EXTRACT(MONTH FROM ws.shift_date) AS month,
        COALESCE(SUM(sp.tons_of_ore), 0) AS total_production,
        COUNT(ws.id) AS shifts_count
    {_SHIFTS_BY_DEPOSIT}
    WHERE EXTRACT(YEAR FROM ws.shift_date) = :year
    GROUP BY od.name, EXTRACT(MONTH FROM ws.shift_date)
    ORDER BY month, total_production DESC""",
                params=("year",),
            ),
        ),
        # All time: deposit, mineral, year and month
        ReportVariant(
            requires=(),
            template=ReportTemplate(
                sql=f"""
    SELECT
        od.name AS deposit_name,
        m.name AS mineral_name,
        EXTRACT(YEAR FROM ws.shift_date) AS year,
        EXTRACT(MONTH FROM ws.shift_date) AS month_number,
        COUNT(ws.id) AS shifts_count,
        COALESCE(SUM(sp.tons_of_ore), 0) AS total_production,
        COALESCE(ROUND(AVG(sp.tons_of_ore), 2), 0) AS avg_production
    {_SHIFTS_BY_DEPOSIT}
    LEFT JOIN minerals m ON sp.mineral_id = m.id
    GROUP BY od.name, m.name, EXTRACT(YEAR FROM ws.shift_date), EXTRACT(MONTH FROM ws.shift_date)
    ORDER BY year DESC, month_number DESC"""
            ),
        ),
    ],
    ReportKind.SALES_BY_MINERAL: [
        ReportVariant(
            requires=_DATE_RANGE,
            template=ReportTemplate(
                sql=f"""{_SALES_COLUMNS}
    WHERE s.sale_date BETWEEN CAST(:from AS DATE) AND CAST(:to AS DATE)
    GROUP BY m.name
    ORDER BY total_revenue DESC""",
                params=_DATE_RANGE,
            ),
        ),
        ReportVariant(
            requires=(),
            template=ReportTemplate(
                sql=f"""{_SALES_COLUMNS}
    GROUP BY m.name
    ORDER BY total_revenue DESC"""
            ),
        ),
    ],
    ReportKind.RESERVES_STATUS: [
        ReportVariant(
            requires=("isConfirmed",),
            template=ReportTemplate(
                sql=f"""{_RESERVES_COLUMNS}
    WHERE r.is_confirmed = :isConfirmed
    ORDER BY od.name, m.name""",
                params=("isConfirmed",),
            ),
        ),
        ReportVariant(
            requires=(),
            template=ReportTemplate(
                sql=f"""{_RESERVES_COLUMNS}
    ORDER BY od.name, m.name"""
            ),
        ),
    ],
    ReportKind.INFRASTRUCTURE_REPORT: [
        ReportVariant(
            requires=("q",),
            template=ReportTemplate(
                sql=f"""{_INFRASTRUCTURE_COLUMNS}
    WHERE od.name ILIKE :q
       OR od.nearby_settlement ILIKE :q
    ORDER BY od.name""",
                params=("q",),
                converters={"q": wrap_wildcards},
            ),
        ),
        ReportVariant(
            requires=(),
            template=ReportTemplate(
                sql=f"""{_INFRASTRUCTURE_COLUMNS}
    ORDER BY od.name"""
            ),
        ),
    ],
    ReportKind.TEAM_EFFICIENCY: [
        ReportVariant(
            requires=_YEAR_MONTH,
            template=ReportTemplate(
                sql=f"""
    SELECT
        tn.name AS team_name,
        mt.foreman_name,{_TEAM_METRICS}
    {_TEAM_SHIFTS}
    WHERE EXTRACT(YEAR FROM ws.shift_date) = :year
      AND EXTRACT(MONTH FROM ws.shift_date) = :month
    GROUP BY tn.name, mt.foreman_name
    ORDER BY total_production DESC""",
                params=_YEAR_MONTH,
            ),
        ),
        ReportVariant(
            requires=(),
            template=ReportTemplate(
                sql=f"""
    SELECT
        tn.name AS team_name,
        mt.foreman_name,
        EXTRACT(YEAR FROM ws.shift_date) AS year,
        EXTRACT(MONTH FROM ws.shift_date) AS month,{_TEAM_METRICS}
    {_TEAM_SHIFTS}
    GROUP BY tn.name, mt.foreman_name, EXTRACT(YEAR FROM ws.shift_date), EXTRACT(MONTH FROM ws.shift_date)
    ORDER BY year DESC, month DESC, total_production DESC"""
            ),
        ),
    ],
    ReportKind.BUYER_STATISTICS: [
        ReportVariant(
            requires=_DATE_RANGE,
            template=ReportTemplate(
                sql=f"""{_BUYER_COLUMNS}
    WHERE (s.sale_date BETWEEN CAST(:from AS DATE) AND CAST(:to AS DATE) OR s.sale_date IS NULL){_BUYER_GROUPING}""",
                params=_DATE_RANGE,
            ),
        ),
        ReportVariant(
            requires=(),
            template=ReportTemplate(sql=f"""{_BUYER_COLUMNS}{_BUYER_GROUPING}"""),
        ),
    ],
    ReportKind.DISCOVERY_TIMELINE: [
        # from/to are discovery years here, not dates
        ReportVariant(
            requires=_DATE_RANGE,
            template=ReportTemplate(
                sql=f"""{_DISCOVERY_COLUMNS}
    WHERE od.discovery_year BETWEEN :from AND :to
    GROUP BY od.discovery_year
    ORDER BY od.discovery_year DESC""",
                params=_DATE_RANGE,
                converters={"from": coerce_value, "to": coerce_value},
            ),
        ),
        ReportVariant(
            requires=(),
            template=ReportTemplate(
                sql=f"""{_DISCOVERY_COLUMNS}
    GROUP BY od.discovery_year
    ORDER BY od.discovery_year DESC"""
            ),
        ),
    ],
    ReportKind.EQUIPMENT_DAMAGE: [
        ReportVariant(
            requires=_DATE_RANGE,
            template=ReportTemplate(
                sql=f"""{_DAMAGE_COLUMNS}
      AND ws.shift_date BETWEEN CAST(:from AS DATE) AND CAST(:to AS DATE)
    ORDER BY ws.shift_date DESC""",
                params=_DATE_RANGE,
            ),
        ),
        ReportVariant(
            requires=(),
            template=ReportTemplate(
                sql=f"""{_DAMAGE_COLUMNS}
    ORDER BY ws.shift_date DESC"""
            ),
        ),
    ],
}


def _is_present(name: str, value: Any) -> bool:
    if value is None:
        return False
    # A blank search string means "no search"
    if name == "q" and isinstance(value, str) and not value.strip():
        return False
    return True


def resolve_kind(report_name: str) -> ReportKind:
    try:
        return ReportKind(report_name)
    except ValueError:
        raise UnknownReport(f"Unknown report type: {report_name}")


def choose_variant(
    kind: ReportKind, filters: Optional[Mapping[str, Any]] = None
) -> ReportVariant:
    """Return the first variant of a report whose required filters are all present."""
    filters = filters or {}
    for variant in REPORTS[kind]:
        if all(_is_present(name, filters.get(name)) for name in variant.requires):
            return variant
    # Every report ends with a variant that requires nothing
    raise LookupError(f"No template matches report {kind.value}")


def select_report(
    report_name: str, filters: Optional[Mapping[str, Any]] = None
) -> Statement:
    """
    Resolve a report name and filters into SQL plus its bound parameters.

    Args:
        report_name: One of the ReportKind values, e.g. "monthly-production"
        filters: Optional filters keyed by wire name (from, to, year, month,
            q, isConfirmed); None values count as absent

    Returns:
        Statement with only the parameters the chosen SQL references

    Example:
        select_report("monthly-production", {"year": 2023})
        -> per-month SQL, {"year": 2023}
    """
    kind = resolve_kind(report_name)
    filters = filters or {}
    variant = choose_variant(kind, filters)
    return Statement(variant.template.sql, variant.template.bind(filters))
