"""Distribution API tests"""

import pytest
from fastapi.testclient import TestClient

from wardrobe.core.event_types import EventTypes
from wardrobe.db.models import NpcRecordModel, SourceFileModel

GUARD_ID = "000D01:Skyrim.esm"
BANDIT_ID = "01E6E1:Skyrim.esm"


@pytest.fixture()
def seeded(db_session):
    db_session.add_all(
        [
            SourceFileModel(file_name="Skyrim.esm", position=0),
            SourceFileModel(file_name="A_DISTR.ini", position=1),
            SourceFileModel(file_name="B_DISTR.ini", position=2),
            NpcRecordModel(
                record_id=GUARD_ID,
                source_file="Skyrim.esm",
                name="Guard",
                level=10,
                factions=["F1"],
                race_id="NordRace",
            ),
            NpcRecordModel(
                record_id=BANDIT_ID,
                source_file="Skyrim.esm",
                name="",
                editor_id="EncBandit01",
                level=3,
                factions=["BanditFaction"],
                race_id="ImperialRace",
            ),
        ]
    )
    db_session.commit()


def _post_entry(client: TestClient, **body) -> dict:
    response = client.post("/distribution/entries", json=body)
    assert response.status_code == 201, response.text
    return response.json()


class TestEntries:
    def test_create_entry(self, client, seeded):
        data = _post_entry(
            client,
            source_file="A_DISTR.ini",
            outfit_id="O1",
            criteria={"min_level": 5, "is_female": False},
        )
        assert data["priority"] == 1
        assert data["order"] == 0
        assert data["chance"] == 100
        assert data["targeting_mode"] == "criteria"
        assert data["targeting_summary"] == "Trait"

    def test_unknown_file_is_400(self, client, seeded):
        response = client.post(
            "/distribution/entries", json={"source_file": "Nope.ini", "outfit_id": "O1"}
        )
        assert response.status_code == 400

    def test_both_modes_is_422(self, client, seeded):
        response = client.post(
            "/distribution/entries",
            json={
                "source_file": "A_DISTR.ini",
                "outfit_id": "O1",
                "criteria": {"min_level": 5},
                "npc_ids": [GUARD_ID],
            },
        )
        assert response.status_code == 422

    def test_chance_out_of_range_is_422(self, client, seeded):
        response = client.post(
            "/distribution/entries",
            json={"source_file": "A_DISTR.ini", "outfit_id": "O1", "chance": 150},
        )
        assert response.status_code == 422

    def test_delete_entry(self, client, seeded):
        entry = _post_entry(client, source_file="A_DISTR.ini", outfit_id="O1")
        assert client.delete(f"/distribution/entries/{entry['entry_id']}").status_code == 204
        assert client.delete(f"/distribution/entries/{entry['entry_id']}").status_code == 404

    def test_clear_entries(self, client, seeded):
        _post_entry(client, source_file="A_DISTR.ini", outfit_id="O1")
        _post_entry(client, source_file="B_DISTR.ini", outfit_id="O2")
        response = client.delete("/distribution/entries", params={"source_file": "A_DISTR.ini"})
        assert response.json() == {"removed": 1}


class TestAssignments:
    def test_list_and_conflicts(self, client, seeded, event_bus):
        resolved = []
        event_bus.subscribe(EventTypes.ASSIGNMENTS_RESOLVED, resolved.append)

        _post_entry(client, source_file="A_DISTR.ini", outfit_id="O1")
        _post_entry(client, source_file="B_DISTR.ini", outfit_id="O2", npc_ids=[GUARD_ID], chance=40)

        data = client.get("/distribution/assignments").json()
        by_id = {a["record_id"]: a for a in data}
        assert set(by_id) == {GUARD_ID, BANDIT_ID}

        guard = by_id[GUARD_ID]
        assert guard["final_outfit_id"] == "O2"
        assert guard["winning_file"] == "B_DISTR.ini"
        assert guard["has_conflict"] is True
        assert guard["conflict_summary"] == "2 files"
        assert guard["chance_display"] == "40%"
        assert guard["targeting_type"] == "Specific"
        assert [c["is_winner"] for c in guard["candidates"]] == [False, True]

        bandit = by_id[BANDIT_ID]
        assert bandit["display_name"] == "EncBandit01"
        assert bandit["has_conflict"] is False
        assert bandit["targeting_type"] == "All"

        conflicts = client.get("/distribution/assignments", params={"conflicts_only": True}).json()
        assert [a["record_id"] for a in conflicts] == [GUARD_ID]
        assert len(resolved) == 2

    def test_get_single_assignment(self, client, seeded):
        _post_entry(
            client, source_file="A_DISTR.ini", outfit_id=None, criteria={"races": ["ImperialRace"]}
        )
        response = client.get(f"/distribution/assignments/{BANDIT_ID}")
        assert response.status_code == 200
        assert response.json()["final_outfit"] == "(No outfit)"
        assert client.get(f"/distribution/assignments/{GUARD_ID}").status_code == 404

    def test_existing_distributions(self, client, seeded):
        _post_entry(client, source_file="A_DISTR.ini", outfit_id="O1", criteria={"factions": ["F1"]})
        response = client.get("/distribution/existing", params={"source_file": "B_DISTR.ini"})
        assert response.json() == [{"record_id": GUARD_ID, "conflicting_file": "A_DISTR.ini"}]

    def test_duplicate_npc_ids_is_409(self, client, seeded, monkeypatch):
        from wardrobe.core.distribution import NpcRecord
        from wardrobe.services.distribution_service import DistributionService

        twin = NpcRecord(record_id=GUARD_ID, source_file="Skyrim.esm")
        monkeypatch.setattr(DistributionService, "load_npcs", lambda self: [twin, twin])
        _post_entry(client, source_file="A_DISTR.ini", outfit_id="O1")
        assert client.get("/distribution/assignments").status_code == 409


class TestReport:
    def test_report_before_any_pass(self, client, seeded):
        data = client.get("/distribution/report").json()
        assert data == {
            "passes": 0,
            "stale": True,
            "assigned": 0,
            "conflicted_ids": [],
            "unresolved": [],
        }

    def test_report_follows_passes(self, client, seeded):
        _post_entry(client, source_file="A_DISTR.ini", outfit_id="O1", npc_ids=[GUARD_ID])
        _post_entry(client, source_file="B_DISTR.ini", outfit_id="O2", npc_ids=[GUARD_ID])
        _post_entry(
            client, source_file="B_DISTR.ini", outfit_id="O3", criteria={"keywords": ["K?"]}
        )
        client.get("/distribution/assignments")

        report = client.get("/distribution/report").json()
        assert report["passes"] == 1
        assert report["stale"] is False
        assert report["assigned"] == 1
        assert report["conflicted_ids"] == [GUARD_ID]
        assert report["unresolved"] == [
            {
                "entry_id": report["unresolved"][0]["entry_id"],
                "source_file": "B_DISTR.ini",
                "kind": "keyword",
                "reference_id": "K?",
            }
        ]

        _post_entry(client, source_file="A_DISTR.ini", outfit_id="O1")
        assert client.get("/distribution/report").json()["stale"] is True

    def test_orphaned_entry_reported(self, client, seeded, db_session):
        from wardrobe.db.models import DistributionEntryModel

        db_session.add(
            DistributionEntryModel(
                entry_id="orphan", source_file="Gone_DISTR.ini", position=0, npc_ids=[]
            )
        )
        db_session.commit()
        _post_entry(client, source_file="A_DISTR.ini", outfit_id="O1", npc_ids=[BANDIT_ID])

        response = client.get("/distribution/assignments")
        assert response.status_code == 200
        assert [a["record_id"] for a in response.json()] == [BANDIT_ID]

        (ref,) = client.get("/distribution/report").json()["unresolved"]
        assert ref["kind"] == "source_file"
        assert ref["reference_id"] == "Gone_DISTR.ini"
