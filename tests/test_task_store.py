from choreboard.models import TaskAssignmentUpdate, TaskKind, empty_tasks

DAY = "2024-01-08"


def test_unwritten_date_is_absent_but_range_synthesizes(any_store):
    assert any_store.get_by_date(DAY) is None
    [record] = any_store.get_range([DAY])
    assert record.date == DAY
    assert record.tasks == empty_tasks()
    assert record.alone_in_kitchen is None
    assert record.dish_of_the_day is None
    assert record.shopping_list == []
    # Synthesized records are not stored.
    assert any_store.get_by_date(DAY) is None


def test_range_keeps_input_order_and_mints_fresh_ids(any_store):
    any_store.set_dish_of_the_day("2024-01-09", "Soup")
    records = any_store.get_range(["2024-01-10", "2024-01-09", "2024-01-08"])
    assert [r.date for r in records] == ["2024-01-10", "2024-01-09", "2024-01-08"]
    assert records[1].dish_of_the_day == "Soup"
    assert len({r.id for r in records}) == 3
    again = any_store.get_range(["2024-01-10"])
    assert again[0].id != records[0].id


def test_assign_task_only_touches_one_slot(any_store):
    any_store.assign_task(DAY, TaskKind.shop, "Bo")
    record = any_store.assign_task(DAY, "cook", "Alice")
    assert record.tasks == {"cook": "Alice", "shop": "Bo", "setTable": None, "washDishes": None}
    stored = any_store.get_by_date(DAY)
    assert stored.tasks["cook"] == "Alice"
    assert stored.tasks["shop"] == "Bo"


def test_assign_task_can_unassign(any_store):
    any_store.assign_task(DAY, TaskKind.wash_dishes, "Carla")
    record = any_store.assign_task(DAY, TaskKind.wash_dishes, None)
    assert record.tasks["washDishes"] is None


def test_id_is_stable_across_mutations(any_store):
    first = any_store.assign_task(DAY, TaskKind.cook, "Anna")
    second = any_store.set_dish_of_the_day(DAY, "Lasagna")
    third = any_store.set_alone_in_kitchen(DAY, "yes")
    assert first.id == second.id == third.id


def test_reset_keeps_date_and_clears_everything(any_store):
    any_store.assign_task(DAY, TaskKind.cook, "Anna")
    any_store.set_alone_in_kitchen(DAY, "Bo")
    any_store.set_dish_of_the_day(DAY, "Pizza")
    before = any_store.add_shopping_item(DAY, "flour")
    record = any_store.reset_tasks(DAY)
    assert record.date == DAY
    assert record.id == before.id
    assert record.tasks == empty_tasks()
    assert record.alone_in_kitchen is None
    assert record.dish_of_the_day is None
    assert record.shopping_list == []
    assert any_store.reset_tasks(DAY) == record


def test_reset_on_fresh_date_creates_empty_record(any_store):
    record = any_store.reset_tasks(DAY)
    assert any_store.get_by_date(DAY) == record


def test_add_shopping_item_trims_and_allows_duplicates(any_store):
    record = any_store.add_shopping_item(DAY, "  milk  ")
    assert record.shopping_list == ["milk"]
    any_store.add_shopping_item(DAY, "milk")
    assert any_store.get_by_date(DAY).shopping_list == ["milk", "milk"]


def test_add_blank_shopping_item_is_ignored(any_store):
    record = any_store.add_shopping_item(DAY, "   ")
    assert record.shopping_list == []
    assert any_store.get_by_date(DAY) is not None


def test_remove_shopping_item_by_index(any_store):
    any_store.replace_shopping_list(DAY, ["milk", "eggs"])
    assert any_store.remove_shopping_item(DAY, 0).shopping_list == ["eggs"]


def test_remove_shopping_item_out_of_range_is_noop(any_store):
    any_store.replace_shopping_list(DAY, ["milk", "eggs"])
    assert any_store.remove_shopping_item(DAY, 5).shopping_list == ["milk", "eggs"]
    assert any_store.remove_shopping_item(DAY, -1).shopping_list == ["milk", "eggs"]


def test_replace_shopping_list_drops_blank_entries(any_store):
    record = any_store.replace_shopping_list(DAY, ["", " ", "bread", " jam "])
    assert record.shopping_list == ["bread", " jam "]


def test_upsert_creates_with_defaults(any_store):
    record = any_store.upsert(TaskAssignmentUpdate(date=DAY, dish_of_the_day="Tacos"))
    assert record.dish_of_the_day == "Tacos"
    assert record.tasks == empty_tasks()
    assert record.shopping_list == []
    assert record.alone_in_kitchen is None


def test_upsert_merges_provided_fields_only(any_store):
    created = any_store.upsert(
        TaskAssignmentUpdate(date=DAY, dish_of_the_day="Tacos", shopping_list=["salsa", ""])
    )
    assert created.shopping_list == ["salsa"]
    updated = any_store.upsert(TaskAssignmentUpdate(date=DAY, alone_in_kitchen="Anna"))
    assert updated.id == created.id
    assert updated.dish_of_the_day == "Tacos"
    assert updated.shopping_list == ["salsa"]
    assert updated.alone_in_kitchen == "Anna"
    cleared = any_store.upsert(TaskAssignmentUpdate(date=DAY, dish_of_the_day=None))
    assert cleared.dish_of_the_day is None
    assert cleared.alone_in_kitchen == "Anna"


def test_upsert_fills_missing_task_slots(any_store):
    record = any_store.upsert(TaskAssignmentUpdate(date=DAY, tasks={"cook": "Bo"}))
    assert record.tasks == {"cook": "Bo", "shop": None, "setTable": None, "washDishes": None}


def test_returned_records_are_detached(any_store):
    record = any_store.add_shopping_item(DAY, "milk")
    record.shopping_list.append("sneaky")
    record.tasks["cook"] = "sneaky"
    stored = any_store.get_by_date(DAY)
    assert stored.shopping_list == ["milk"]
    assert stored.tasks["cook"] is None


def test_ensure_dates_only_creates_missing(any_store):
    any_store.set_dish_of_the_day("2024-01-09", "Curry")
    created = any_store.ensure_dates(["2024-01-08", "2024-01-09", "2024-01-10"])
    assert [r.date for r in created] == ["2024-01-08", "2024-01-10"]
    assert any_store.get_by_date("2024-01-09").dish_of_the_day == "Curry"
    assert any_store.ensure_dates(["2024-01-08"]) == []


def test_end_to_end_day(any_store):
    any_store.assign_task(DAY, TaskKind.cook, "Anna")
    any_store.set_dish_of_the_day(DAY, "Lasagna")
    record = any_store.get_by_date(DAY)
    payload = record.model_dump(mode="json", by_alias=True, exclude={"id"})
    assert payload == {
        "date": DAY,
        "tasks": {"cook": "Anna", "shop": None, "setTable": None, "washDishes": None},
        "aloneInKitchen": None,
        "dishOfTheDay": "Lasagna",
        "shoppingList": [],
    }
