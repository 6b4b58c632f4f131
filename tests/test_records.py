import pytest

from tests.conftest import OTHER_ID, USER_ID
from workshop_tracker.errors import PermissionDeniedError, ValidationError
from workshop_tracker.expenses import create_expense, delete_expense, list_expenses, update_expense
from workshop_tracker.incomes import create_income, delete_income, list_incomes, update_income


@pytest.fixture
def records(fake):
    fake.tables["incomes"] = [
        {"id": 1, "user_id": USER_ID, "name": "Clay Night", "payment": 100, "guest_count": 8,
         "class_type_id": 1, "created_at": "2024-03-05T18:00:00+00:00"},
        {"id": 2, "user_id": OTHER_ID, "name": "Glazing", "payment": 200, "guest_count": 10,
         "class_type_id": None, "created_at": "2024-03-07T18:00:00+00:00"},
    ]
    fake.tables["expenses"] = [
        {"id": 1, "user_id": USER_ID, "name": "Clay", "cost": 30, "category": "Shipping",
         "created_at": "2024-03-10T09:00:00+00:00"},
        {"id": 2, "user_id": OTHER_ID, "name": "Glaze", "cost": 40, "category": "Recurring",
         "created_at": "2024-03-11T09:00:00+00:00"},
    ]
    return fake


# ---------------------- INCOMES ----------------------

def test_list_incomes_is_scoped_to_owner(records, user):
    rows = list_incomes(records, user, instructor_id=OTHER_ID)
    assert [r["id"] for r in rows] == [1]
    assert rows[0]["class_types"] == {"name": "Pottery"}


def test_admin_lists_all_incomes_newest_first(records, admin):
    assert [r["id"] for r in list_incomes(records, admin)] == [2, 1]
    assert [r["id"] for r in list_incomes(records, admin, instructor_id=USER_ID)] == [1]


def test_create_income_stamps_owner_and_notifies(records, cfg, user):
    income = create_income(records, cfg, user, {
        "name": "  Wheel Basics ", "payment": "75.5", "guest_count": "6",
        "platform": "In person", "class_type_id": 1,
    })

    assert income["user_id"] == USER_ID
    assert income["name"] == "Wheel Basics"
    assert income["payment"] == 75.5
    assert income["guest_count"] == 6
    name, options = records.functions.invocations[-1]
    assert name == cfg.notifications.function_name
    assert options["body"]["type"] == "income"
    assert options["body"]["recordId"] == income["id"]
    assert options["body"]["amount"] == 75.5


def test_create_income_survives_notification_failure(records, cfg, user):
    records.functions.fail = True
    income = create_income(records, cfg, user, {"name": "Quiet", "payment": 10})
    assert any(r["id"] == income["id"] for r in records.rows("incomes"))


@pytest.mark.parametrize("form, message", [
    ({"name": "", "payment": 10}, "Workshop name is required"),
    ({"name": "X", "payment": "abc"}, "Payment must be a number"),
    ({"name": "X", "payment": "nan"}, "Payment must be a number"),
    ({"name": "X", "payment": "inf"}, "Payment must be a number"),
    ({"name": "X", "payment": -5}, "Payment cannot be negative"),
    ({"name": "X", "payment": 5, "guest_count": "-1"}, "Guest count cannot be negative"),
])
def test_create_income_validation(records, cfg, user, form, message):
    with pytest.raises(ValidationError, match=message):
        create_income(records, cfg, user, form)
    assert records.functions.invocations == []


def test_user_cannot_edit_someone_elses_income(records, user):
    with pytest.raises(PermissionDeniedError):
        update_income(records, user, 2, {"name": "Mine now", "payment": 1})
    assert records.rows("incomes")[1]["name"] == "Glazing"


def test_admin_can_edit_any_income(records, admin):
    updated = update_income(records, admin, 2, {"name": "Glazing II", "payment": 220, "guest_count": 11})
    assert updated["name"] == "Glazing II"
    assert updated["user_id"] == OTHER_ID


def test_delete_income(records, user):
    delete_income(records, user, 1)
    assert [r["id"] for r in records.rows("incomes")] == [2]

    with pytest.raises(PermissionDeniedError):
        delete_income(records, user, 2)
    with pytest.raises(PermissionDeniedError, match="Record not found"):
        delete_income(records, user, 99)


# ---------------------- EXPENSES ----------------------

def test_list_expenses_scoping_and_category(records, user, admin):
    assert [r["id"] for r in list_expenses(records, user)] == [1]
    assert [r["id"] for r in list_expenses(records, admin, category="Recurring")] == [2]
    assert list_expenses(records, admin)[0]["profiles"]["full_name"] == "Sam Ortiz"


def test_create_expense_notifies(records, cfg, user):
    expense = create_expense(records, cfg, user, {
        "name": "Kiln repair", "cost": 120, "category": "Recurring", "month": "March",
    })
    assert expense["user_id"] == USER_ID
    body = records.functions.invocations[-1][1]["body"]
    assert body["type"] == "expense"
    assert body["date"] == "March"


def test_create_expense_rejects_unknown_category(records, cfg, user):
    with pytest.raises(ValidationError, match="Unknown category"):
        create_expense(records, cfg, user, {"name": "X", "cost": 1, "category": "Snacks"})


def test_update_and_delete_expense_ownership(records, user, other_user):
    updated = update_expense(records, user, 1, {"name": "Clay (bulk)", "cost": 45, "category": "Shipping"})
    assert updated["cost"] == 45

    with pytest.raises(PermissionDeniedError):
        delete_expense(records, other_user, 1)
    delete_expense(records, other_user, 2)
    assert [r["id"] for r in records.rows("expenses")] == [1]
