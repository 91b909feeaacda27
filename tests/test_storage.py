"""Tests for file-backed settings storage."""

import json

import pytest

from nightscout_sync.schemas.profile import BasalProfileEntry, CarbRatioEntry, CarbRatios
from nightscout_sync.services.storage import BASAL_PROFILE_KEY, CARB_RATIOS_KEY, FileStorage


class TestFileStorage:
    def test_saves_model_as_json(self, file_storage):
        ratios = CarbRatios(schedule=[CarbRatioEntry(start="00:00", offset=0, ratio=10)])

        file_storage.save(ratios, CARB_RATIOS_KEY)

        stored = json.loads(file_storage.load(CARB_RATIOS_KEY))
        assert stored == {
            "units": "grams",
            "schedule": [{"start": "00:00", "offset": 0, "ratio": 10.0}],
        }

    def test_saves_list_documents(self, file_storage):
        basal = [
            BasalProfileEntry(start="00:00", minutes=0, rate=0.8),
            BasalProfileEntry(start="06:00", minutes=21600, rate=1.1),
        ]

        file_storage.save(basal, BASAL_PROFILE_KEY)

        stored = json.loads(file_storage.load(BASAL_PROFILE_KEY))
        assert [entry["rate"] for entry in stored] == [0.8, 1.1]

    def test_overwrites_wholesale(self, file_storage):
        ratios = CarbRatios(schedule=[CarbRatioEntry(start="00:00", offset=0, ratio=10)])

        file_storage.save(ratios, CARB_RATIOS_KEY)
        file_storage.save(CarbRatios(schedule=[]), CARB_RATIOS_KEY)

        assert json.loads(file_storage.load(CARB_RATIOS_KEY))["schedule"] == []

    def test_leaves_no_temp_files(self, file_storage):
        file_storage.save(CarbRatios(schedule=[]), CARB_RATIOS_KEY)

        files = sorted(p.name for p in file_storage.path_for(CARB_RATIOS_KEY).parent.iterdir())
        assert files == ["carb_ratios.json"]

    def test_load_missing(self, file_storage):
        assert file_storage.load("settings/missing.json") is None

    def test_rejects_keys_outside_root(self, file_storage):
        with pytest.raises(ValueError):
            file_storage.save(CarbRatios(schedule=[]), "../escape.json")
