from choreboard.models import AppContentUpsert, UserUpsert
from choreboard.store import DEFAULT_CONTENT


def test_upsert_user_creates_with_defaults(any_store):
    user = any_store.upsert_user(UserUpsert(id="u1", email="anna@example.com"))
    assert user.id == "u1"
    assert user.email == "anna@example.com"
    assert user.first_name is None
    assert user.is_admin is False
    assert user.created_at == user.updated_at
    assert any_store.get_user("u1") == user


def test_upsert_user_keeps_created_at(any_store):
    first = any_store.upsert_user(UserUpsert(id="u1", email="anna@example.com", first_name="Anna"))
    second = any_store.upsert_user(UserUpsert(id="u1", last_name="Berg"))
    assert second.created_at == first.created_at
    assert second.updated_at >= first.updated_at
    assert second.first_name == "Anna"
    assert second.last_name == "Berg"
    assert second.email == "anna@example.com"


def test_upsert_user_ignores_missing_admin_flag(any_store):
    any_store.upsert_user(UserUpsert(id="u1", is_admin=True))
    user = any_store.upsert_user(UserUpsert(id="u1", first_name="Anna", is_admin=None))
    assert user.is_admin is True


def test_unknown_user_is_none(any_store):
    assert any_store.get_user("nobody") is None


def test_content_id_is_stable_per_key(any_store):
    first = any_store.upsert_content(AppContentUpsert(key="app.title", value="One", description="Title"))
    second = any_store.upsert_content(AppContentUpsert(key="app.title", value="Two"))
    assert second.id == first.id
    assert second.value == "Two"
    assert second.description == "Title"
    assert second.updated_at >= first.updated_at
    other = any_store.upsert_content(AppContentUpsert(key="app.other", value="x"))
    assert other.id != first.id


def test_content_description_can_be_cleared(any_store):
    any_store.upsert_content(AppContentUpsert(key="k", value="v", description="note"))
    updated = any_store.upsert_content(AppContentUpsert(key="k", value="v", description=None))
    assert updated.description is None


def test_list_and_delete_content(any_store):
    any_store.upsert_content(AppContentUpsert(key="b", value="2"))
    any_store.upsert_content(AppContentUpsert(key="a", value="1"))
    assert [c.key for c in any_store.list_content()] == ["a", "b"]
    assert any_store.delete_content("a") is True
    assert any_store.delete_content("a") is False
    assert any_store.get_content("a") is None
    assert [c.key for c in any_store.list_content()] == ["b"]


def test_seed_default_content_only_fills_missing(any_store):
    any_store.upsert_content(AppContentUpsert(key="app.title", value="Our kitchen"))
    inserted = any_store.seed_default_content()
    assert sorted(c.key for c in inserted) == sorted(set(DEFAULT_CONTENT) - {"app.title"})
    assert any_store.get_content("app.title").value == "Our kitchen"
    assert any_store.seed_default_content() == []
    intro = any_store.get_content("app.intro")
    assert intro.description == DEFAULT_CONTENT["app.intro"][1]
