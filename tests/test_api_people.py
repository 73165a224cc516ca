"""Person reads, sub-resources and writes through the REST facade."""
import pytest

from arena_api.core.arena import entities as arena

from tests.conftest import ALICE, BOB, CAROL


# ─────────────────────────────────────────────────────────────────────────────
# Person projection
# ─────────────────────────────────────────────────────────────────────────────
def test_family_member_sees_every_field(api_get):
    payload = api_get(f"/cust/rc/person/{BOB}", person_id=ALICE).get_json()

    assert payload["MedicalInformation"] == "Peanut allergy"
    assert payload["FamilyLink"] == "family/100"
    assert payload["BirthDate"] == "1978-09-03T00:00:00"


def test_unrelated_caller_only_sees_granted_fields(api_get):
    payload = api_get(f"/cust/rc/person/{CAROL}", person_id=BOB).get_json()

    assert payload["PersonID"] == CAROL
    assert payload["FirstName"] == "Carol"
    assert payload["Gender"] == "Female"
    assert payload["Emails"] == [{"Address": "carol@example.org", "Active": True, "Order": 0}]
    for hidden in ("Phones", "CampusName", "MedicalInformation", "BirthDate", "PersonLink", "FamilyID"):
        assert hidden not in payload


def test_requested_fields_narrow_unrelated_projection(api_get):
    payload = api_get(f"/person/{CAROL}", person_id=BOB, fields="firstname,Phones").get_json()

    assert payload == {"FirstName": "Carol"}


def test_repeated_fields_keys_are_combined(api_get):
    payload = api_get(f"/person/{CAROL}", person_id=BOB, fields=["FirstName", "Gender"]).get_json()

    assert payload == {"FirstName": "Carol", "Gender": "Female"}


def test_caller_without_grants_sees_nothing(api_get):
    response = api_get(f"/cust/rc/person/{CAROL}", person_id=ALICE)

    assert response.status_code == 200
    assert response.get_json() == {}


def test_group_leader_sees_member(api_get):
    payload = api_get(f"/cust/rc/person/{ALICE}", person_id=CAROL).get_json()

    assert payload["Phones"][0]["Number"] == "(555) 201-3344"


def test_unknown_person_is_404(api_get):
    response = api_get("/cust/rc/person/9999")

    assert response.status_code == 404
    assert response.get_json() == {"StatusCode": 404, "Message": "Invalid person id"}


def test_person_requires_session(client):
    response = client.get(f"/cust/rc/person/{ALICE}", query_string={"format": "json"})

    assert response.status_code == 401


# ─────────────────────────────────────────────────────────────────────────────
# Sub-resources
# ─────────────────────────────────────────────────────────────────────────────
def test_family_members(api_get):
    payload = api_get(f"/cust/rc/person/{ALICE}/familymembers").get_json()

    assert payload["Total"] == 2
    assert payload["Max"] == 2
    assert [m["FullName"] for m in payload["Items"]] == ["Alice Anderson", "Bob Anderson"]
    assert payload["Items"][0]["RoleTypeValue"] == "Adult"


@pytest.mark.parametrize("resource", ["familymembers", "primaryemail", "previousids", "relationships"])
def test_sub_resource_of_unknown_person_is_404(api_get, resource):
    response = api_get(f"/cust/rc/person/9999/{resource}")

    assert response.status_code == 404
    assert response.get_json() == {"StatusCode": 404, "Message": "Invalid person id"}


def test_relationships(api_get):
    items = api_get(f"/cust/rc/person/{ALICE}/relationships").get_json()["Items"]

    assert items == [{
        "PersonID": ALICE,
        "FullName": "Alice Anderson",
        "RelatedPersonID": CAROL,
        "RelatedFullName": "Carol Chen",
        "RelationshipTypeID": 5,
        "RelationshipTypeValue": "Friend",
    }]


def test_previous_ids_render_as_int_items(client, session_for):
    response = client.get(f"/cust/rc/person/{ALICE}/previousids", query_string={"api_session": session_for(ALICE)})

    assert b"<Total>0</Total>" in response.data


def test_primary_email(api_get):
    assert api_get(f"/cust/rc/person/{ALICE}/primaryemail").get_json() == {
        "Address": "alice@example.org",
        "Active": True,
        "Order": 0,
    }


def test_primary_email_without_any_active_email(api_get, store):
    for record in store.people[ALICE].emails:
        record.active = False

    assert api_get(f"/cust/rc/person/{ALICE}/primaryemail").get_json() == {"Active": True}


@pytest.mark.parametrize("caller,total", [(CAROL, 1), (BOB, 1), (ALICE, 0)])
def test_group_leadership_respects_cluster_permission(api_get, caller, total):
    payload = api_get(f"/cust/rc/person/{CAROL}/groupleadership/list", person_id=caller).get_json()

    assert payload["Total"] == total
    if total:
        assert payload["Items"] == [{"ID": 50, "Title": "Tuesday Young Adults"}]


def test_group_leadership_skips_inactive_membership(api_get, store):
    store.groups[50].members[0].active = False

    assert api_get(f"/cust/rc/person/{CAROL}/groupleadership/list", person_id=CAROL).get_json()["Total"] == 0


def test_group_leadership_filters_cluster_type(api_get):
    payload = api_get(f"/cust/rc/person/{CAROL}/groupleadership/list", person_id=CAROL, clusterTypeId="99").get_json()

    assert payload["Total"] == 0


def test_person_events(api_get):
    payload = api_get(f"/cust/rc/person/{ALICE}/event/list").get_json()

    assert payload["Total"] == 1
    event = payload["Items"][0]
    assert event["Id"] == 400
    assert event["Name"] == "Fall Retreat"
    assert event["Location"] == "Camp Lakeside"


# ─────────────────────────────────────────────────────────────────────────────
# I'm In
# ─────────────────────────────────────────────────────────────────────────────
def _imin(**overrides):
    payload = {
        "FirstName": "Dana",
        "LastName": "Diaz",
        "DateOfBirth": "1995-06-01T00:00:00",
        "Email": "dana@example.org",
        "PhoneNumber": "(502) 253-8000",
        "PhoneType": "cell",
        "Campus": "Main Campus",
        "IsMember": "true",
    }
    payload.update(overrides)
    return payload


def test_imin_validation_failure_is_not_submitted(api_post, store):
    response = api_post("/cust/rc/person/imin", _imin(FirstName=""), person_id=None)

    payload = response.get_json()
    assert response.status_code == 200
    assert payload["Successful"] == "False"
    assert [r["Key"] for r in payload["ValidationResults"]] == ["FirstNameMissing"]
    assert store.imin_submissions == []


@pytest.mark.parametrize("field,key", [("FirstName", "FirstNameMissing"), ("LastName", "LastNameMissing")])
def test_imin_whitespace_name_is_missing(api_post, store, field, key):
    payload = api_post("/cust/rc/person/imin", _imin(**{field: "   "}), person_id=None).get_json()

    assert payload["Successful"] == "False"
    assert [r["Key"] for r in payload["ValidationResults"]] == [key]
    assert store.imin_submissions == []


def test_imin_collects_every_failure(api_post):
    payload = api_post(
        "/person/imin", _imin(PhoneNumber="12", PhoneType="Fax", Campus="Moon"), person_id=None
    ).get_json()

    keys = [r["Key"] for r in payload["ValidationResults"]]
    assert keys == ["PhoneNumberInvalid", "PhoneTypeInvalid", "CampusInvalid"]
    assert payload["ValidationResults"][1]["Message"] == "Phone type is invalid (Home, Cell)"


def test_imin_creates_person(api_post, store):
    payload = api_post("/cust/rc/person/imin", _imin(), person_id=None).get_json()

    assert payload["Successful"] == "True"
    submission = store.imin_submissions[0]
    assert (submission.phone_type_id, submission.campus_id, submission.is_member) == (2, 1, True)
    new_id = int(payload["Link"].rsplit("/", 1)[-1])
    assert store.people[new_id].first_name == "Dana"


def test_imin_store_failure_is_reported(api_post, store, monkeypatch):
    def explode(submission, user):
        raise RuntimeError("workflow offline")

    monkeypatch.setattr(store, "process_imin", explode)

    payload = api_post("/cust/rc/person/imin", _imin(), person_id=None).get_json()

    assert payload["Successful"] == "False"
    assert payload["ErrorMessage"] == "workflow offline"
    assert payload["ValidationResults"][0]["Key"] == "ImInGeneralError"


def test_imin_rejects_malformed_body(client):
    response = client.post("/cust/rc/person/imin", query_string={"format": "json"},
                           data="{not json", content_type="application/json")

    assert response.status_code == 400
    assert response.get_json()["Message"] == "Malformed ImIn body."


# ─────────────────────────────────────────────────────────────────────────────
# person/add
# ─────────────────────────────────────────────────────────────────────────────
def test_add_person_matches_existing(api_post):
    payload = api_post("/cust/rc/person/add", {
        "FirstName": "Alice", "LastName": "Anderson", "BirthDate": "1980-04-12T00:00:00",
    }).get_json()

    assert payload == {"Successful": "True", "Link": f"cust/secc/person/{ALICE}"}


def test_add_person_creates_new_record(api_post, store):
    payload = api_post("/cust/rc/person/add", {
        "FirstName": "Evan", "LastName": "Ellis",
        "Emails": [{"Address": "evan@example.org", "Active": True}],
    }).get_json()

    assert payload["Successful"] == "True"
    created = store.people[int(payload["Link"].rsplit("/", 1)[-1])]
    assert created.emails[0].email == "evan@example.org"
    assert created.organization_id == 1


def test_add_person_requires_enough_information(api_post):
    payload = api_post("/cust/rc/person/add", {"FirstName": "E", "LastName": "Ellis"}).get_json()

    assert payload["Successful"] == "False"
    assert [r["Key"] for r in payload["ValidationResults"]] == ["ShortFirstName", "NotEnoughInfo"]


# ─────────────────────────────────────────────────────────────────────────────
# Attributes
# ─────────────────────────────────────────────────────────────────────────────
def test_attribute_update_requires_edit_permission(api_post, store):
    payload = api_post(f"/cust/rc/person/{ALICE}/attribute/update",
                       {"AttributeID": 77, "StringValue": "yes"}).get_json()

    assert payload == {"Successful": "False", "ErrorMessage": "Permission denied to edit attribute."}
    assert store.attributes == {}


def test_attribute_update_requires_attribute_id(api_post):
    payload = api_post(f"/cust/rc/person/{ALICE}/attribute/update", {"StringValue": "yes"}).get_json()

    assert payload["ErrorMessage"] == "Attribute ID is required."


def test_attribute_update_saves_typed_value(api_post, store):
    store.grant(arena.ObjectType.ATTRIBUTE, 77, "PERSON", ALICE, arena.OperationType.EDIT)
    store.attributes[(BOB, 77)] = arena.PersonAttribute(77, BOB, "Shirt size", "int", 10)

    payload = api_post(f"/cust/rc/person/{BOB}/attribute/update", {"AttributeID": 77, "IntValue": 12}).get_json()

    assert payload == {"Successful": "True"}
    assert store.attributes[(BOB, 77)].value == 12
    assert store.attributes[(BOB, 77)].name == "Shirt size"
