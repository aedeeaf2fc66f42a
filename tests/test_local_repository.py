import json
import re
from datetime import datetime, timedelta, timezone
from unittest import mock

import pytest
from sqlalchemy.exc import OperationalError

from config import PROJECTS_KEY, WEBSITE_ANALYTICS_KEY
from schemas import FileShare, Project, ProjectType, Ticket, UserRole, WebsiteAnalytics
from storage import generate_id
from storage.local import LocalRepository


def make_project(project_id="proj-1", **fields):
    defaults = {"name": "Site vitrine", "client_id": "client-1", "web_developer_id": "dev-1"}
    defaults.update(fields)
    return Project(id=project_id, **defaults)


def test_generate_id_format():
    first = generate_id("proj")
    assert re.match(r"^proj-[0-9a-z]+-[0-9a-z]{7}$", first)
    assert first != generate_id("proj")


def test_storage_set_get_remove(storage):
    assert storage.get_item("missing") is None
    storage.set_item("key", "value")
    storage.set_item("key", "other")
    assert storage.get_item("key") == "other"
    storage.remove_item("key")
    assert storage.get_item("key") is None


def test_add_then_get_by_id(data):
    project = make_project()
    data.projects.add(project)
    assert data.projects.get_by_id("proj-1").model_dump() == project.model_dump()
    assert data.projects.get_by_id("proj-unknown") is None


def test_stored_json_uses_camel_case(data, storage):
    data.projects.add(make_project())
    stored = json.loads(storage.get_item(PROJECTS_KEY))
    assert stored[0]["clientId"] == "client-1"
    assert stored[0]["webDeveloperId"] == "dev-1"
    assert "client_id" not in stored[0]


def test_reads_are_idempotent_and_return_copies(data):
    data.projects.add(make_project())
    first = data.projects.get_all()
    first[0].name = "Modifié sans sauvegarde"
    second = data.projects.get_all()
    assert second[0].name == "Site vitrine"
    assert [p.model_dump() for p in data.projects.get_all()] == [p.model_dump() for p in second]


def test_update_merges_and_stamps(data):
    past = datetime(2024, 1, 1, tzinfo=timezone.utc)
    data.projects.add(make_project(updated_at=past, created_at=past))

    updated = data.projects.update("proj-1", {"status": "paused", "notes": "En attente du client"})

    assert updated.status == "paused"
    assert updated.notes == "En attente du client"
    assert updated.name == "Site vitrine"
    assert updated.created_at == past
    assert updated.updated_at > past
    assert data.projects.get_by_id("proj-1").notes == "En attente du client"


def test_update_accepts_camel_case_patch(data):
    data.projects.add(make_project())
    updated = data.projects.update("proj-1", {"webDeveloperId": "dev-2"})
    assert updated.web_developer_id == "dev-2"


def test_update_stamp_is_strictly_increasing(data):
    future = datetime.now(timezone.utc) + timedelta(days=1)
    data.projects.add(make_project(updated_at=future))
    updated = data.projects.update("proj-1", {"name": "Nouveau nom"})
    assert updated.updated_at > future


def test_update_missing_id_does_not_write(data, storage):
    data.projects.add(make_project())
    before = storage.get_item(PROJECTS_KEY)
    with mock.patch.object(storage, "set_item") as set_item:
        assert data.projects.update("proj-unknown", {"name": "x"}) is None
        set_item.assert_not_called()
    assert storage.get_item(PROJECTS_KEY) == before


def test_remove(data, storage):
    data.projects.add(make_project())
    data.projects.add(make_project("proj-2"))
    with mock.patch.object(storage, "set_item") as set_item:
        assert data.projects.remove("proj-unknown") is False
        set_item.assert_not_called()
    assert data.projects.remove("proj-1") is True
    assert [p.id for p in data.projects.get_all()] == ["proj-2"]


@pytest.mark.parametrize("raw", ["{not json", '{"id": "proj-1"}', '[{"name": "sans id"}]', "42"])
def test_malformed_data_reads_as_empty(data, storage, raw):
    storage.set_item(PROJECTS_KEY, raw)
    assert data.projects.get_all() == []
    assert data.projects.get_by_id("proj-1") is None


INVALID_PROJECT = {"name": "sans id", "clientId": "client-1"}


@pytest.fixture
def mixed_projects(storage):
    valid = make_project().to_document()
    storage.set_item(PROJECTS_KEY, json.dumps([valid, INVALID_PROJECT]))


def test_invalid_record_does_not_hide_valid_ones(data, mixed_projects):
    assert [p.id for p in data.projects.get_all()] == ["proj-1"]
    assert data.projects.get_by_id("proj-1").name == "Site vitrine"
    assert [p.id for p in data.projects.get_by_user("client-1", "client")] == ["proj-1"]


def test_writes_keep_invalid_records(data, storage, mixed_projects):
    data.projects.add(make_project("proj-2"))
    data.projects.update("proj-1", {"name": "Renommé"})

    stored = json.loads(storage.get_item(PROJECTS_KEY))
    assert len(stored) == 3
    assert stored[1] == INVALID_PROJECT
    assert stored[0]["name"] == "Renommé"
    assert stored[2]["id"] == "proj-2"

    assert data.projects.remove("proj-1") is True
    assert json.loads(storage.get_item(PROJECTS_KEY))[0] == INVALID_PROJECT
    assert [p.id for p in data.projects.get_all()] == ["proj-2"]


def test_read_failure_reads_as_empty(data, storage):
    with mock.patch.object(storage, "get_item", side_effect=OperationalError("SELECT", {}, Exception("locked"))):
        assert data.projects.get_all() == []


def test_write_failure_propagates(data, storage):
    with mock.patch.object(storage, "set_item", side_effect=OperationalError("INSERT", {}, Exception("disk full"))):
        with pytest.raises(OperationalError):
            data.projects.add(make_project())


def test_unknown_stored_fields_are_preserved(data, storage):
    storage.set_item(PROJECTS_KEY, json.dumps([{"id": "proj-1", "name": "Ancien", "clientId": "client-1",
                                                "legacyField": "conservé"}]))
    data.projects.update("proj-1", {"name": "Nouveau"})
    stored = json.loads(storage.get_item(PROJECTS_KEY))
    assert stored[0]["legacyField"] == "conservé"
    assert stored[0]["name"] == "Nouveau"


def test_get_by_user_filters_by_role(data):
    data.projects.add(make_project("proj-web", project_type=ProjectType.website, social_media_coordinator_id="coord-1"))
    data.projects.add(make_project("proj-social", project_type=ProjectType.social_media,
                                   web_developer_id=None, social_media_coordinator_id="coord-1"))

    assert [p.id for p in data.projects.get_by_user("coord-1", "social_media_coordinator")] == ["proj-social"]
    assert [p.id for p in data.projects.get_by_user("dev-1", UserRole.web_developer)] == ["proj-web"]
    assert len(data.projects.get_by_user("client-1", "client")) == 2
    assert len(data.projects.get_by_user("admin-1", "admin")) == 2
    assert data.projects.get_by_user("client-1", "intrus") == []


def test_ticket_assignment_scenario(data):
    data.tickets.add(Ticket(id="ticket-1", project_id="proj-1", created_by="client-1",
                            assigned_to="dev-1", title="Formulaire de contact"))
    assert [t.id for t in data.tickets.get_by_user("dev-1", "web_developer")] == ["ticket-1"]
    assert data.tickets.get_by_user("dev-2", "web_developer") == []


def test_records_without_updated_at_are_not_stamped(storage):
    repository = LocalRepository(storage, WEBSITE_ANALYTICS_KEY, WebsiteAnalytics, "wa")
    repository.add(WebsiteAnalytics(id="wa-1", project_id="proj-1", date=datetime(2024, 5, 1, tzinfo=timezone.utc),
                                    page_views=10, recorded_by="dev-1"))
    updated = repository.update("wa-1", {"page_views": 12})
    assert updated.page_views == 12
    assert "updated_at" not in updated.model_dump()


def test_attached_records_follow_project_rule(data):
    data.projects.add(make_project())
    data.file_shares.add(FileShare(id="file-1", project_id="proj-1", uploaded_by="admin-1",
                                   file_name="maquette.pdf", is_public=True))
    data.file_shares.add(FileShare(id="file-2", project_id="proj-1", uploaded_by="admin-1",
                                   file_name="devis.pdf"))
    assert [f.id for f in data.file_shares.get_by_user("client-1", "client")] == ["file-1"]
    assert len(data.file_shares.get_by_user("dev-1", "web_developer")) == 2
    assert data.file_shares.get_by_user("dev-2", "web_developer") == []
