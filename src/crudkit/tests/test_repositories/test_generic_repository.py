import logging

import pytest
from sqlalchemy import select

from crudkit.database.transaction import transaction
from crudkit.dto.request import Direction, PageQueryParam
from crudkit.exceptions.base import DuplicateError, InvalidFieldError, NotFoundError, QueryError
from crudkit.models.user import User
from crudkit.repositories import DeleteOutcome, field


@pytest.mark.asyncio
class TestGenericRepositoryCreate:

    async def test_create_success(self, generic_user_repository, sample_user_data):
        """
        Behavior:
            - create() inserts the row in its own transaction and returns the persisted model.

        Importance:
            - Database-assigned fields (auto-increment id, server default created_at, column default
              is_active) must be populated on the returned instance.
        """
        user = await generic_user_repository.create(User(**sample_user_data))

        assert user.id is not None
        assert user.name == sample_user_data["name"]
        assert user.email == sample_user_data["email"]
        assert user.is_active is True
        assert user.created_at is not None

    async def test_create_then_find_by_id_returns_equal_model(self, generic_user_repository, sample_user_data):
        created = await generic_user_repository.create(User(**sample_user_data))

        found = await generic_user_repository.find_by_id(created.id)

        entity = generic_user_repository.entity
        assert found is not None
        assert entity.to_record(found) == entity.to_record(created)

    async def test_create_does_not_attach_the_passed_instance(self, generic_user_repository, sample_user_data):
        draft = User(**sample_user_data)

        created = await generic_user_repository.create(draft)

        assert created is not draft
        assert draft.id is None

    async def test_create_duplicate_email_raises_and_persists_nothing(self, generic_user_repository, created_user):
        """
        Behavior:
            - A unique violation inside create() is rolled back and surfaces as DuplicateError.

        Importance:
            - Rollback atomicity: a failed mutation leaves no partial state behind.
        """
        with pytest.raises(DuplicateError) as exc_info:
            await generic_user_repository.create(User(name="Other", email=created_user.email))

        assert exc_info.value.fields == ["email"]
        # original driver error stays reachable
        assert exc_info.value.__cause__ is not None

        rows = await generic_user_repository.find_list()
        assert [u.id for u in rows] == [created_user.id]

    async def test_create_missing_required_column_raises_query_error(self, generic_user_repository):
        with pytest.raises(QueryError) as exc_info:
            await generic_user_repository.create(User(name=None, email="nobody@example.com"))

        assert "Missing required field" in str(exc_info.value)
        assert await generic_user_repository.count_condition(None) == 0

    async def test_create_logs_success_event(self, generic_user_repository, sample_user_data, caplog):
        caplog.set_level(logging.INFO, logger="crudkit")

        user = await generic_user_repository.create(User(**sample_user_data))

        records = [r for r in caplog.records if r.getMessage() == "repo.create.success"]
        assert len(records) == 1
        assert records[0].model == "User"
        assert records[0].id == user.id
        # values never end up in the success event
        assert not hasattr(records[0], "email")


@pytest.mark.asyncio
class TestGenericRepositoryRead:

    async def test_find_by_id_missing_returns_none(self, generic_user_repository):
        assert await generic_user_repository.find_by_id(12345) is None

    async def test_exists(self, generic_user_repository, created_user):
        assert await generic_user_repository.exists(created_user.id) is True
        assert await generic_user_repository.exists(created_user.id + 1000) is False

    async def test_find_list_is_ordered_by_primary_key(self, generic_user_repository, multiple_users):
        rows = await generic_user_repository.find_list()

        assert [u.id for u in rows] == sorted(u.id for u in multiple_users)

    async def test_find_by_list_condition(self, generic_user_repository, multiple_users):
        rows = await generic_user_repository.find_by_list_condition(
            field("name").in_(["user_1", "user_3"])
        )

        assert [u.name for u in rows] == ["user_1", "user_3"]

    async def test_find_by_list_condition_accepts_sqlalchemy_expression(self, generic_user_repository, multiple_users):
        rows = await generic_user_repository.find_by_list_condition(User.name == "user_2")

        assert [u.id for u in rows] == [multiple_users[2].id]

    async def test_find_one_condition_returns_lowest_primary_key(self, generic_user_repository, multiple_users):
        """
        Behavior:
            - When several rows match, find_one_condition returns the one with the lowest primary key.

        Importance:
            - The result must not depend on the database's physical row order.
        """
        user = await generic_user_repository.find_one_condition(field("is_active").eq(True))

        assert user is not None
        assert user.id == min(u.id for u in multiple_users)

    async def test_find_one_condition_no_match_returns_none(self, generic_user_repository, multiple_users):
        assert await generic_user_repository.find_one_condition(field("name").eq("nobody")) is None

    async def test_count_condition(self, generic_user_repository, multiple_users):
        assert await generic_user_repository.count_condition(None) == 5
        assert await generic_user_repository.count_condition(field("name").ne("user_0")) == 4
        assert await generic_user_repository.count_condition(~field("name").like("user_%")) == 0

    async def test_unknown_filter_column_raises_invalid_field(self, generic_user_repository):
        with pytest.raises(InvalidFieldError) as exc_info:
            await generic_user_repository.find_by_list_condition(field("nope").eq(1))

        assert exc_info.value.fields == ["nope"]


@pytest.mark.asyncio
class TestGenericRepositoryPagination:

    async def test_pages_of_two_over_five_rows(self, generic_user_repository, multiple_users):
        """
        Behavior:
            - page_size=2 over 5 rows sorted by id ASC gives [1,2], [3,4], [5].
            - every page reports total=5.

        Importance:
            - Pages are 0-based: page_num * page_size is the offset.
        """
        ids = [u.id for u in multiple_users]
        pages = []
        for page_num in range(3):
            param = PageQueryParam(page_num=page_num, page_size=2, sort_by="id", sort_direction=Direction.ASC)
            rows, total = await generic_user_repository.find_page(param)
            assert total == 5
            assert len(rows) <= 2
            pages.append([u.id for u in rows])

        assert pages == [ids[0:2], ids[2:4], ids[4:5]]

    async def test_total_is_independent_of_page_bounds(self, generic_user_repository, multiple_users):
        cond = field("name").ne("user_0")
        totals = set()
        for page_num, page_size in [(0, 1), (1, 2), (3, 3), (10, 10)]:
            _, total = await generic_user_repository.find_page_condition(
                cond, PageQueryParam(page_num=page_num, page_size=page_size)
            )
            totals.add(total)

        assert totals == {4}

    async def test_repeated_calls_return_identical_results(self, generic_user_repository, multiple_users):
        param = PageQueryParam(page_num=1, page_size=2, sort_by="name", sort_direction=Direction.DESC)

        first_rows, first_total = await generic_user_repository.find_page(param)
        second_rows, second_total = await generic_user_repository.find_page(param)

        assert first_total == second_total
        assert [u.id for u in first_rows] == [u.id for u in second_rows]

    async def test_sort_descending(self, generic_user_repository, multiple_users):
        param = PageQueryParam(page_num=0, page_size=3, sort_by="name", sort_direction=Direction.DESC)

        rows, total = await generic_user_repository.find_page(param)

        assert [u.name for u in rows] == ["user_4", "user_3", "user_2"]
        assert total == 5

    async def test_sort_ties_are_broken_by_primary_key(self, generic_user_repository, multiple_users):
        # every row has is_active=True: order falls back to the primary key
        param = PageQueryParam(page_num=0, page_size=5, sort_by="is_active")

        rows, _ = await generic_user_repository.find_page(param)

        assert [u.id for u in rows] == [u.id for u in multiple_users]

    async def test_page_past_the_end_is_empty(self, generic_user_repository, multiple_users):
        rows, total = await generic_user_repository.find_page(PageQueryParam(page_num=7, page_size=2))

        assert rows == []
        assert total == 5

    async def test_page_size_zero_returns_only_total(self, generic_user_repository, multiple_users):
        rows, total = await generic_user_repository.find_page(PageQueryParam(page_num=0, page_size=0))

        assert rows == []
        assert total == 5

    async def test_unknown_sort_column_raises_invalid_field(self, generic_user_repository, multiple_users):
        param = PageQueryParam(page_num=0, page_size=2, sort_by="password")

        with pytest.raises(InvalidFieldError) as exc_info:
            await generic_user_repository.find_page(param)

        # InvalidFieldError is a QueryError for callers that only catch the broad class
        assert isinstance(exc_info.value, QueryError)
        assert exc_info.value.fields == ["password"]


@pytest.mark.asyncio
class TestGenericRepositoryUpdate:

    async def test_update_by_id_replaces_row(self, generic_user_repository, created_user):
        created_user.name = "Renamed"
        created_user.is_active = False

        updated = await generic_user_repository.update_by_id(created_user)

        assert updated.id == created_user.id
        assert updated.name == "Renamed"
        assert updated.is_active is False

        stored = await generic_user_repository.find_by_id(created_user.id)
        assert stored.name == "Renamed"
        assert stored.email == created_user.email

    async def test_update_by_id_with_fresh_model_resets_unset_columns(self, generic_user_repository):
        """
        Behavior:
            - update_by_id replaces the whole row: a column left unset on a freshly built model goes
              back to its default instead of keeping the stored value.
            - server-managed created_at is left as stored.
        """
        stored = await generic_user_repository.create(User(name="A", email="a@example.com", is_active=False))

        updated = await generic_user_repository.update_by_id(User(id=stored.id, name="B", email="b@example.com"))

        assert updated.name == "B"
        assert updated.email == "b@example.com"
        assert updated.is_active is True
        assert updated.created_at == stored.created_at

        reloaded = await generic_user_repository.find_by_id(stored.id)
        assert reloaded.is_active is True

    async def test_update_by_id_with_required_column_unset_raises_invalid_field(self, generic_user_repository, created_user):
        with pytest.raises(InvalidFieldError) as exc_info:
            await generic_user_repository.update_by_id(User(id=created_user.id, name="Only name"))

        assert exc_info.value.fields == ["email"]
        stored = await generic_user_repository.find_by_id(created_user.id)
        assert stored.name == created_user.name

    async def test_update_by_id_missing_row_raises_not_found(self, generic_user_repository):
        ghost = User(id=999, name="Ghost", email="ghost@example.com", is_active=True)

        with pytest.raises(NotFoundError):
            await generic_user_repository.update_by_id(ghost)

        assert await generic_user_repository.count_condition(None) == 0

    async def test_update_by_id_without_primary_key_raises_invalid_field(self, generic_user_repository):
        with pytest.raises(InvalidFieldError):
            await generic_user_repository.update_by_id(User(name="x", email="x@example.com"))

    async def test_update_by_id_duplicate_rolls_back(self, generic_user_repository, multiple_users):
        first, second = multiple_users[0], multiple_users[1]
        original_name = second.name
        second.name = "Changed"
        second.email = first.email

        with pytest.raises(DuplicateError):
            await generic_user_repository.update_by_id(second)

        stored = await generic_user_repository.find_by_id(second.id)
        assert stored.name == original_name

    async def test_update_by_condition_returns_affected_count(self, generic_user_repository, multiple_users):
        affected = await generic_user_repository.update_by_condition(
            field("name").in_(["user_0", "user_1", "user_2"]),
            {"is_active": False},
        )

        assert affected == 3
        assert await generic_user_repository.count_condition(field("is_active").eq(False)) == 3

    async def test_update_by_condition_accepts_pairs(self, generic_user_repository, multiple_users):
        affected = await generic_user_repository.update_by_condition(
            field("name").eq("user_4"), [("name", "user_four")]
        )

        assert affected == 1
        assert await generic_user_repository.find_one_condition(field("name").eq("user_four")) is not None

    async def test_update_by_condition_without_assignments_changes_nothing(self, generic_user_repository, multiple_users):
        """
        Behavior:
            - With no assignments, nothing is written and the number of matching rows is returned.
        """
        before = {u.id: generic_user_repository.entity.to_record(u) for u in await generic_user_repository.find_list()}

        affected = await generic_user_repository.update_by_condition(field("name").like("user_%"), [])

        after = {u.id: generic_user_repository.entity.to_record(u) for u in await generic_user_repository.find_list()}
        assert affected == 5
        assert before == after

    async def test_update_by_condition_rejects_unknown_and_key_columns(self, generic_user_repository, multiple_users):
        with pytest.raises(InvalidFieldError):
            await generic_user_repository.update_by_condition(None, {"nickname": "x"})

        with pytest.raises(InvalidFieldError) as exc_info:
            await generic_user_repository.update_by_condition(None, {"id": 1})
        assert exc_info.value.fields == ["id"]


@pytest.mark.asyncio
class TestGenericRepositoryDelete:

    async def test_delete_existing_row(self, generic_user_repository, created_user):
        outcome = await generic_user_repository.delete(created_user.id)

        assert outcome == DeleteOutcome(rows_affected=1)
        assert await generic_user_repository.find_by_id(created_user.id) is None

    async def test_delete_missing_row_is_not_an_error(self, generic_user_repository):
        outcome = await generic_user_repository.delete(424242)

        assert outcome.rows_affected == 0

    async def test_delete_batch(self, generic_user_repository, multiple_users):
        outcome = await generic_user_repository.delete_batch(
            field("name").eq("user_0") | field("name").eq("user_4")
        )

        assert outcome.rows_affected == 2
        remaining = await generic_user_repository.find_list()
        assert [u.name for u in remaining] == ["user_1", "user_2", "user_3"]

    async def test_delete_by_ids_ignores_unknown_ids(self, generic_user_repository, multiple_users):
        ids = [multiple_users[0].id, multiple_users[1].id, 999_999]

        outcome = await generic_user_repository.delete_by_ids(ids)

        assert outcome.rows_affected == 2
        assert await generic_user_repository.count_condition(None) == 3

    async def test_delete_by_ids_empty(self, generic_user_repository, multiple_users):
        outcome = await generic_user_repository.delete_by_ids([])

        assert outcome.rows_affected == 0
        assert await generic_user_repository.count_condition(None) == 5


@pytest.mark.asyncio
class TestTransactionDiscipline:

    async def test_error_inside_block_rolls_back_and_propagates_unchanged(self, session_factory, generic_user_repository):
        """
        Behavior:
            - A non-database exception raised inside transaction() rolls back the unit of work and
              reaches the caller as the very same exception.
        """
        boom = RuntimeError("boom")

        with pytest.raises(RuntimeError) as exc_info:
            async with transaction(session_factory, "User") as session:
                session.add(User(name="Half", email="half@example.com"))
                await session.flush()
                raise boom

        assert exc_info.value is boom
        assert await generic_user_repository.find_list() == []

    async def test_block_without_error_commits(self, session_factory, generic_user_repository):
        async with transaction(session_factory, "User") as session:
            session.add(User(name="Whole", email="whole@example.com"))

        rows = await generic_user_repository.find_list()
        assert [u.name for u in rows] == ["Whole"]

    async def test_database_error_is_mapped(self, session_factory, created_user):
        with pytest.raises(DuplicateError):
            async with transaction(session_factory, "User") as session:
                session.add(User(name="Dup", email=created_user.email))
                await session.flush()

        async with session_factory() as session:
            emails = (await session.execute(select(User.email))).scalars().all()
        assert emails == [created_user.email]
