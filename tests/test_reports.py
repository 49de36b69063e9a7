import re

import pytest
from httpx import AsyncClient

from app.core.database import get_executor
from app.core.gateway.exceptions import UnknownReport
from app.core.gateway.reports import REPORTS, ReportKind, select_report
from app.main import app

# Same rule SQLAlchemy's text() uses to find :name bind parameters
BIND_RE = re.compile(r"(?<![:\w\\]):(\w+)(?!:)")


def referenced_params(sql: str) -> set:
    return set(BIND_RE.findall(sql))


def test_every_report_kind_has_templates():
    assert set(REPORTS) == set(ReportKind)


def test_every_report_ends_with_unfiltered_variant():
    for kind, variants in REPORTS.items():
        assert variants[-1].requires == (), kind


def test_templates_bind_exactly_what_they_reference():
    for kind, variants in REPORTS.items():
        for variant in variants:
            template = variant.template
            assert referenced_params(template.sql) == set(template.params), kind
            assert "::" not in template.sql


def test_monthly_production_year_and_month():
    statement = select_report("monthly-production", {"year": 2023, "month": 5})
    assert "GROUP BY od.name, m.name\n" in statement.sql
    assert "avg_production_per_shift" in statement.sql
    assert statement.params == {"year": 2023, "month": 5}


def test_monthly_production_year_only():
    statement = select_report("monthly-production", {"year": 2023})
    assert "GROUP BY od.name, EXTRACT(MONTH FROM ws.shift_date)" in statement.sql
    assert ":month" not in statement.sql
    assert statement.params == {"year": 2023}


def test_monthly_production_all_time():
    statement = select_report("monthly-production", {})
    assert "month_number" in statement.sql
    assert "WHERE" not in statement.sql
    assert statement.params == {}


def test_month_without_year_falls_back_to_all_time():
    statement = select_report("monthly-production", {"month": 5})
    assert statement.params == {}
    assert "month_number" in statement.sql


def test_unknown_report():
    with pytest.raises(UnknownReport) as exc_info:
        select_report("not-a-report", {})
    assert exc_info.value.message == "Unknown report type: not-a-report"


def test_date_range_needs_both_bounds():
    statement = select_report("sales-by-mineral", {"from": "2023-01-01"})
    assert statement.params == {}

    statement = select_report(
        "sales-by-mineral", {"from": "2023-01-01", "to": "2023-12-31"}
    )
    assert "CAST(:from AS DATE)" in statement.sql
    assert statement.params == {"from": "2023-01-01", "to": "2023-12-31"}


def test_unrelated_filters_are_not_bound():
    statement = select_report(
        "equipment-damage", {"year": 2023, "q": "gold", "isConfirmed": True}
    )
    assert statement.params == {}


def test_search_is_wrapped_in_wildcards():
    statement = select_report("infrastructure-report", {"q": "Norilsk"})
    assert statement.params == {"q": "%Norilsk%"}


def test_blank_search_is_ignored():
    statement = select_report("infrastructure-report", {"q": "   "})
    assert statement.params == {}
    assert "ILIKE" not in statement.sql


def test_reserves_status_filter_accepts_false():
    statement = select_report("reserves-status", {"isConfirmed": False})
    assert statement.params == {"isConfirmed": False}

    unfiltered = select_report("reserves-status", {"isConfirmed": None})
    assert unfiltered.params == {}
    assert "mineral_name" in unfiltered.sql


def test_discovery_timeline_binds_years():
    statement = select_report("discovery-timeline", {"from": "1950", "to": " 1990 "})
    assert statement.params == {"from": 1950, "to": 1990}


def test_team_efficiency_needs_year_and_month():
    statement = select_report("team-efficiency", {"year": 2023})
    assert statement.params == {}
    assert "ORDER BY year DESC, month DESC" in statement.sql


class StubExecutor:
    """Records report queries instead of running them."""

    def __init__(self, rows=None):
        self.rows = rows or []
        self.calls = []

    async def fetch_all(self, sql, params=None):
        self.calls.append((sql, params))
        return self.rows


@pytest.fixture
def stub_executor():
    stub = StubExecutor(rows=[{"deposit_name": "North", "total_production": 120}])
    app.dependency_overrides[get_executor] = lambda: stub
    yield stub
    app.dependency_overrides.clear()


@pytest.mark.asyncio
async def test_report_endpoint_passes_filters(client: AsyncClient, stub_executor):
    response = await client.get(
        "/api/reports/monthly-production", params={"year": 2023, "month": 5}
    )
    assert response.status_code == 200
    assert response.json() == [{"deposit_name": "North", "total_production": 120}]
    sql, params = stub_executor.calls[0]
    assert params == {"year": 2023, "month": 5}


@pytest.mark.asyncio
async def test_report_endpoint_wire_names(client: AsyncClient, stub_executor):
    await client.get("/api/reports/reserves-status", params={"isConfirmed": "true"})
    await client.get(
        "/api/reports/buyer-statistics", params={"from": "2023-01-01", "to": "2023-06-30"}
    )
    assert stub_executor.calls[0][1] == {"isConfirmed": True}
    assert stub_executor.calls[1][1] == {"from": "2023-01-01", "to": "2023-06-30"}


@pytest.mark.asyncio
async def test_unknown_report_endpoint(client: AsyncClient, stub_executor):
    response = await client.get("/api/reports/not-a-report")
    assert response.status_code == 404
    assert response.json()["detail"] == "Unknown report type: not-a-report"
    assert stub_executor.calls == []
