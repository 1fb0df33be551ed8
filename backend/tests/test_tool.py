"""Tests for the DataAnalysisTool façade."""
import asyncio

import pytest

from models.requests import AnalysisRequest
from services import tool as tool_module
from services.tool import DataAnalysisTool


def _stages(events):
    return [event["stage"] for event in events]


class ExplodingRegistry:
    """Registry stand-in whose operations fail unexpectedly."""

    def related_files(self, request):
        return {}

    def execute(self, dataset, request, related=None):
        raise RuntimeError("boom")


class TestInvoke:
    """Tests for successful invocations."""

    @pytest.mark.asyncio
    async def test_describe(self, tool, sales_csv):
        report = await tool.invoke({"operation": "describe", "filePath": sales_csv})
        assert report.startswith("Dataset: 5 rows x 5 columns")

    @pytest.mark.asyncio
    async def test_read_csv_with_limit(self, tool, sales_csv):
        report = await tool.invoke({"operation": "read_csv", "filePath": sales_csv, "limit": 2})

        assert report.startswith("Loaded 5 rows x 5 columns from sales.csv")
        assert "Columns: region (text), product (text), units (numeric), price (numeric), active (boolean)" in report
        assert "... 3 more rows" in report

    @pytest.mark.asyncio
    async def test_read_csv_selected_columns(self, tool, sales_csv):
        report = await tool.invoke({"operation": "read_csv", "filePath": sales_csv, "columns": ["units", "region"]})
        assert "Columns: units (numeric), region (text)" in report

    @pytest.mark.asyncio
    async def test_group_by_partition_law(self, tool, write_csv):
        path = write_csv("groups.csv", "category,value\nA,10\nA,20\nB,30\nB,40\nB,50\n")
        report = await tool.invoke({
            "operation": "group_by",
            "filePath": path,
            "groupByColumn": "category",
            "aggregateColumn": "value",
            "aggregateFunc": "sum",
        })
        assert report.splitlines() == ["Group sum(value) by 'category': 2 groups", "A: 30", "B: 120"]

    @pytest.mark.asyncio
    async def test_snake_case_parameters(self, tool, sales_csv):
        report = await tool.invoke({
            "operation": "filter",
            "file_path": sales_csv,
            "filter_column": "units",
            "filter_operator": "gt",
            "filter_value": 15,
        })
        assert report.startswith("Filter units gt 15: 3 of 5 rows")

    @pytest.mark.asyncio
    async def test_accepts_request_model(self, tool, sales_csv):
        request = AnalysisRequest(operation="statistics", file_path=sales_csv, column="price")
        report = await tool.invoke(request)
        assert report.startswith("Statistics for 'price' (numeric)")

    @pytest.mark.asyncio
    async def test_outliers(self, tool, write_csv):
        path = write_csv("scores.csv", "id,score\n0,10\n1,11\n2,12\n3,13\n4,100\n5,14\n6,15\n")
        report = await tool.invoke({"operation": "outliers", "filePath": path, "column": "score"})

        assert "1 of 7 values" in report
        assert "row 4: 100" in report

    @pytest.mark.asyncio
    async def test_correlation(self, tool, sales_csv):
        report = await tool.invoke({"operation": "correlation", "filePath": sales_csv, "columns": ["units", "units"]})
        assert report.splitlines()[1] == "units ~ units: 1 (n=4)"

    @pytest.mark.asyncio
    async def test_pivot(self, tool, sales_csv):
        report = await tool.invoke({
            "operation": "pivot",
            "filePath": sales_csv,
            "pivotRows": "region",
            "pivotCols": "product",
            "pivotValues": "units",
        })
        assert report.startswith("Pivot sum(units) by 'region' x 'product': 3 rows")

    @pytest.mark.asyncio
    async def test_transform(self, tool, sales_csv):
        report = await tool.invoke({
            "operation": "transform",
            "filePath": sales_csv,
            "transformColumn": "price",
            "transformType": "log",
        })
        assert report.startswith("Added column 'log_price' (log of 'price'): 5 rows, 1 null values in 'log_price'")

    @pytest.mark.asyncio
    async def test_source_file_is_not_modified(self, tool, workspace, sales_csv):
        before = (workspace / sales_csv).read_bytes()
        await tool.invoke({"operation": "transform", "filePath": sales_csv, "transformColumn": "units", "transformType": "abs"})
        assert (workspace / sales_csv).read_bytes() == before

    @pytest.mark.asyncio
    async def test_concurrent_invocations_are_independent(self, tool, sales_csv):
        request = {"operation": "statistics", "filePath": sales_csv, "column": "units"}
        reports = await asyncio.gather(*[tool.invoke(dict(request)) for _ in range(5)])
        assert len(set(reports)) == 1


    @pytest.mark.asyncio
    async def test_explicit_null_filter_value(self, tool, sales_csv):
        report = await tool.invoke({
            "operation": "filter",
            "filePath": sales_csv,
            "filterColumn": "units",
            "filterOperator": "eq",
            "filterValue": None,
        })
        assert report.startswith("Filter units eq null: 1 of 5 rows")

    @pytest.mark.asyncio
    async def test_merge_datasets(self, tool, sales_csv, write_csv):
        write_csv("regions.csv", "region,manager\nNorth,Ann\nSouth,Raj\n")
        report = await tool.invoke({
            "operation": "merge_datasets",
            "filePath": sales_csv,
            "mergeFile": "regions.csv",
            "mergeOn": "region",
            "mergeHow": "left",
            "limit": 5,
        })
        lines = report.splitlines()

        assert lines[0] == "Merged regions.csv (left join on 'region'): 5 rows (left 5, right 2)"
        assert lines[2].split() == ["region", "product", "units", "price", "active", "manager"]
        assert lines[3].split()[-1] == "Ann"
        assert lines[6].split()[-1] == "null"

    @pytest.mark.asyncio
    async def test_delimiter_and_header_options(self, tool, write_csv):
        path = write_csv("scores.txt", "Alice;10\nBob;20\n")
        report = await tool.invoke({
            "operation": "statistics",
            "filePath": path,
            "column": "column_2",
            "delimiter": ";",
            "hasHeader": False,
        })

        assert report.startswith("Statistics for 'column_2' (numeric)")
        assert "  sum: 30" in report.splitlines()


class TestOutputPath:
    """Tests for saving derived datasets."""

    @pytest.mark.asyncio
    async def test_filter_saves_csv(self, tool, workspace, sales_csv):
        report = await tool.invoke({
            "operation": "filter",
            "filePath": sales_csv,
            "filterColumn": "region",
            "filterOperator": "eq",
            "filterValue": "North",
            "outputPath": "out/north.csv",
        })

        assert "Saved to out/north.csv" in report
        saved = (workspace / "out" / "north.csv").read_text()
        assert saved.splitlines() == [
            "region,product,units,price,active",
            "North,Widget,10,2.5,true",
            "North,Gadget,30,,true",
        ]

    @pytest.mark.asyncio
    async def test_output_outside_workspace(self, tool, workspace, sales_csv):
        report = await tool.invoke({
            "operation": "sort",
            "filePath": sales_csv,
            "sortColumn": "units",
            "outputPath": "../sorted.csv",
        })

        assert report.startswith("Error: Path escapes workspace root")
        assert not (workspace.parent / "sorted.csv").exists()

    @pytest.mark.asyncio
    async def test_merge_saves_csv(self, tool, workspace, sales_csv, write_csv):
        write_csv("regions.csv", "region,manager\nEast,Lee\n")
        report = await tool.invoke({
            "operation": "merge_datasets",
            "filePath": sales_csv,
            "mergeFile": "regions.csv",
            "mergeOn": "region",
            "outputPath": "merged.csv",
        })

        assert "Saved to merged.csv" in report
        assert (workspace / "merged.csv").read_text().splitlines() == [
            "region,product,units,price,active,manager",
            "East,Widget,,3.5,,Lee",
        ]

    @pytest.mark.asyncio
    async def test_output_not_supported_for_summaries(self, tool, sales_csv):
        report = await tool.invoke({"operation": "describe", "filePath": sales_csv, "outputPath": "d.csv"})
        assert report == "Error: outputPath is not supported for describe"


class TestErrors:
    """Tests for failures rendered as error strings."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("request_params", [
        {"operation": "read_csv"},
        {"operation": "describe"},
        {"operation": "statistics", "column": "units"},
        {"operation": "filter", "filterColumn": "units", "filterOperator": "gt", "filterValue": 1},
        {"operation": "sort", "sortColumn": "units"},
        {"operation": "group_by", "groupByColumn": "region"},
        {"operation": "correlation", "columns": ["units", "price"]},
        {"operation": "outliers", "column": "units"},
    ])
    async def test_nonexistent_file(self, tool, events, request_params):
        report = await tool.invoke({**request_params, "filePath": "nope.csv"})

        assert report.startswith("Error:")
        assert "error" in report.lower()
        assert _stages(events) == ["tool_start", "tool_end"]

    @pytest.mark.asyncio
    async def test_path_traversal(self, tool):
        report = await tool.invoke({"operation": "describe", "filePath": "../../etc/passwd"})
        assert report == "Error: Path escapes workspace root: ../../etc/passwd"

    @pytest.mark.asyncio
    async def test_missing_column(self, tool, sales_csv):
        report = await tool.invoke({"operation": "statistics", "filePath": sales_csv, "column": "revenue"})
        assert report.startswith("Error: Column 'revenue' not found. Available: region, product")

    @pytest.mark.asyncio
    async def test_missing_required_parameter(self, tool, sales_csv):
        report = await tool.invoke({"operation": "statistics", "filePath": sales_csv})
        assert report == "Error: column is required for statistics"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operator", ["eq", "gt"])
    async def test_missing_filter_value(self, tool, events, sales_csv, operator):
        report = await tool.invoke({
            "operation": "filter",
            "filePath": sales_csv,
            "filterColumn": "units",
            "filterOperator": operator,
        })

        assert report == "Error: filterValue is required for filter"
        assert events[1]["detail"]["errorKind"] == "InvalidRequest"

    @pytest.mark.asyncio
    async def test_nul_byte_in_path(self, tool, events):
        report = await tool.invoke({"operation": "describe", "filePath": "data\x00.csv"})

        assert report.startswith("Error: Invalid path")
        assert events[1]["detail"]["errorKind"] == "InvalidRequest"

    @pytest.mark.asyncio
    async def test_merge_requires_merge_file(self, tool, sales_csv):
        report = await tool.invoke({"operation": "merge_datasets", "filePath": sales_csv, "mergeOn": "region"})
        assert report == "Error: mergeFile is required for merge_datasets"

    @pytest.mark.asyncio
    async def test_merge_file_not_found(self, tool, sales_csv):
        report = await tool.invoke({
            "operation": "merge_datasets",
            "filePath": sales_csv,
            "mergeFile": "nope.csv",
            "mergeOn": "region",
        })
        assert report == "Error: File not found: nope.csv"

    @pytest.mark.asyncio
    async def test_merge_requires_merge_on(self, tool, sales_csv):
        report = await tool.invoke({"operation": "merge_datasets", "filePath": sales_csv, "mergeFile": sales_csv})
        assert report == "Error: mergeOn is required for merge_datasets"

    @pytest.mark.asyncio
    async def test_unknown_operation(self, tool, events, sales_csv):
        report = await tool.invoke({"operation": "explode", "filePath": sales_csv})

        assert report.startswith("Error: Invalid request: operation")
        assert events[0]["detail"]["operation"] == "explode"

    @pytest.mark.asyncio
    async def test_missing_file_path(self, tool):
        report = await tool.invoke({"operation": "describe"})
        assert report.startswith("Error: Invalid request: filePath")

    @pytest.mark.asyncio
    async def test_non_mapping_request(self, tool):
        report = await tool.invoke(["describe"])
        assert report.startswith("Error:")

    @pytest.mark.asyncio
    async def test_parse_error(self, tool, write_csv):
        path = write_csv("dup.csv", "a,a\n1,2\n")
        report = await tool.invoke({"operation": "describe", "filePath": path})
        assert report.startswith("Error: Duplicate column names")

    @pytest.mark.asyncio
    async def test_unexpected_fault_is_contained(self, workspace, events, sales_csv):
        tool = DataAnalysisTool(workspace_root=workspace, emit_status=events.append, registry=ExplodingRegistry())
        report = await tool.invoke({"operation": "describe", "filePath": sales_csv})

        assert report == "Error: Internal error during describe: boom"
        assert _stages(events) == ["tool_start", "tool_end"]
        assert events[1]["detail"]["errorKind"] == "InternalError"
        assert events[1]["detail"]["status"] == "error"

    @pytest.mark.asyncio
    async def test_timeout(self, workspace, events, sales_csv, monkeypatch):
        async def slow_load(path, storage=None, **options):
            await asyncio.sleep(1)

        monkeypatch.setattr(tool_module, "load_dataset", slow_load)
        tool = DataAnalysisTool(workspace_root=workspace, emit_status=events.append, timeout=0.01)
        report = await tool.invoke({"operation": "describe", "filePath": sales_csv})

        assert report == "Error: Operation 'describe' timed out after 0.01s"
        assert _stages(events) == ["tool_start", "tool_end"]


class TestLifecycleEvents:
    """Tests for tool_start / tool_end notifications."""

    @pytest.mark.asyncio
    async def test_success_events(self, tool, events, sales_csv):
        await tool.invoke({"operation": "describe", "filePath": sales_csv})

        assert _stages(events) == ["tool_start", "tool_end"]
        assert all(event["tool"] == "data_analysis" for event in events)
        assert all(event["requestId"] == "req-1" for event in events)
        assert events[0]["detail"] == {"operation": "describe"}
        assert events[1]["detail"] == {"operation": "describe", "status": "success"}

    @pytest.mark.asyncio
    async def test_failure_events(self, tool, events):
        await tool.invoke({"operation": "describe", "filePath": "missing.csv"})

        assert _stages(events) == ["tool_start", "tool_end"]
        assert events[1]["detail"]["status"] == "error"
        assert events[1]["detail"]["error"] == "File not found: missing.csv"
        assert events[1]["detail"]["errorKind"] == "NotFound"

    @pytest.mark.asyncio
    async def test_one_pair_per_invocation(self, tool, events, sales_csv):
        for _ in range(3):
            await tool.invoke({"operation": "describe", "filePath": sales_csv})
        assert _stages(events) == ["tool_start", "tool_end"] * 3

    @pytest.mark.asyncio
    async def test_generated_request_ids(self, workspace, events, sales_csv):
        tool = DataAnalysisTool(workspace_root=workspace, emit_status=events.append)
        await tool.invoke({"operation": "describe", "filePath": sales_csv})
        await tool.invoke({"operation": "describe", "filePath": sales_csv})

        ids = [event["requestId"] for event in events]
        assert ids[0] == ids[1]
        assert ids[2] == ids[3]
        assert ids[0] != ids[2]

    @pytest.mark.asyncio
    async def test_failing_callback_does_not_break_the_call(self, workspace, sales_csv):
        def broken(event):
            raise ValueError("listener down")

        tool = DataAnalysisTool(workspace_root=workspace, emit_status=broken)
        report = await tool.invoke({"operation": "describe", "filePath": sales_csv})
        assert report.startswith("Dataset:")

    @pytest.mark.asyncio
    async def test_without_callback(self, workspace, sales_csv):
        tool = DataAnalysisTool(workspace_root=workspace)
        assert (await tool.invoke({"operation": "describe", "filePath": sales_csv})).startswith("Dataset:")
