"""Tests for offline bundle validation."""

import json

from src.utils.bundle_validator import validate_bundle, validate_bundle_file


def _fields(issues):
    return [issue.field for issue in issues]


class TestValidBundles:
    def test_scenario_is_valid(self, scenario_bundle):
        result = validate_bundle(scenario_bundle)

        assert result.valid
        assert result.errors == []
        assert result.warnings == []
        assert result.counts["log_entries"] == 3

    def test_empty_bundle_warns(self, bundle_factory):
        result = validate_bundle(bundle_factory())

        assert result.valid
        assert _fields(result.warnings) == ["bundle"]

    def test_to_dict(self, scenario_bundle):
        data = validate_bundle(json.dumps(scenario_bundle)).to_dict()

        assert data["valid"] is True
        assert data["errors"] == []
        assert data["counts"]["food_items"] == 2


class TestErrors:
    def test_malformed(self):
        result = validate_bundle('{"version": 7}')

        assert not result.valid
        assert "unsupported bundle version" in result.errors[0].message

    def test_bad_timestamp(self, scenario_bundle):
        scenario_bundle["body_weights"][0]["measured_at"] = "soon"

        result = validate_bundle(scenario_bundle)

        assert not result.valid
        assert "measured_at" in result.errors[0].message

    def test_missing_and_duplicate_ids(self, bundle_factory):
        result = validate_bundle(
            bundle_factory(
                food_items=[
                    {"id": "f-1", "name": "a"},
                    {"id": "f-1", "name": "b"},
                    {"name": "c"},
                ]
            )
        )

        assert _fields(result.errors) == ["food_items[2].id"]
        assert _fields(result.warnings) == ["food_items[1].id"]

    def test_links_outside_the_bundle(self, bundle_factory):
        result = validate_bundle(
            bundle_factory(
                recipe_ingredients=[{"id": "ri-1", "recipe_id": "r-x", "food_item_id": "f-x"}],
                recipe_portions=[{"id": "rp-1", "recipe_id": "r-x"}],
                preset_items=[
                    {"id": "pi-1", "preset_id": "p-x", "kind": "food", "ref_id": "f-x"}
                ],
            )
        )

        assert _fields(result.errors) == [
            "recipe_ingredients[0].recipe_id",
            "recipe_portions[0].recipe_id",
            "preset_items[0].preset_id",
        ]
        assert _fields(result.warnings) == [
            "recipe_ingredients[0].food_item_id",
            "preset_items[0].ref_id",
        ]

    def test_unknown_kind(self, scenario_bundle):
        scenario_bundle["log_entries"][0]["kind"] = "supplement"

        result = validate_bundle(scenario_bundle)

        assert _fields(result.errors) == ["log_entries[0].kind"]

    def test_bad_activity_date(self, scenario_bundle):
        scenario_bundle["daily_activity"][0]["date"] = "2024-13-45"

        result = validate_bundle(scenario_bundle)

        assert _fields(result.errors) == ["daily_activity[0].date"]
        assert "INVALID" in result.get_summary()


class TestWarnings:
    def test_dangling_log_reference(self, scenario_bundle):
        scenario_bundle["log_entries"][1]["ref_id"] = "portion-deleted"

        result = validate_bundle(scenario_bundle)

        assert result.valid
        assert _fields(result.warnings) == ["log_entries[1].ref_id"]

    def test_repeated_activity_date(self, scenario_bundle):
        scenario_bundle["daily_activity"].append(
            dict(scenario_bundle["daily_activity"][0], steps=1)
        )

        result = validate_bundle(scenario_bundle)

        assert result.valid
        assert _fields(result.warnings) == ["daily_activity[1].date"]

    def test_same_day_written_differently(self, scenario_bundle):
        scenario_bundle["daily_activity"][0]["date"] = "2024-03-01"
        scenario_bundle["daily_activity"].append(
            dict(scenario_bundle["daily_activity"][0], date="2024-3-1", steps=1)
        )

        result = validate_bundle(scenario_bundle)

        assert result.valid
        assert _fields(result.warnings) == ["daily_activity[1].date"]

    def test_duplicate_id_is_a_warning(self, scenario_bundle):
        scenario_bundle["log_entries"].append(dict(scenario_bundle["log_entries"][0], servings=3.0))

        result = validate_bundle(scenario_bundle)

        assert result.valid
        assert _fields(result.warnings) == ["log_entries[3].id"]


class TestFiles:
    def test_valid_file(self, tmp_path, scenario_bundle):
        path = tmp_path / "bundle.json"
        path.write_text(json.dumps(scenario_bundle), encoding="utf-8")

        assert validate_bundle_file(str(path)).valid

    def test_missing_file(self, tmp_path):
        result = validate_bundle_file(str(tmp_path / "missing.json"))

        assert not result.valid
        assert _fields(result.errors) == ["file"]
