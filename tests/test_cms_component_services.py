from unittest.mock import patch

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from app.services.cms_component import page_components, serialize_components


class TestReplaceComponents:
    def test_positions_are_dense_regardless_of_input(self, db_session, page):
        page_components.replace(
            db_session,
            page,
            [
                {"component_type": "footer", "position": 40},
                {"component_type": "hero", "position": 3},
                {"component_type": "text", "position": 17},
            ],
        )
        db_session.commit()
        components = page_components.list(db_session, page.id)
        assert [c.position for c in components] == [0, 1, 2]
        assert [c.component_type for c in components] == ["hero", "text", "footer"]

    def test_list_index_used_when_position_missing(self, db_session, page):
        page_components.replace(
            db_session,
            page,
            [
                {"component_type": "a"},
                {"component_type": "b"},
                {"component_type": "c"},
            ],
        )
        components = page_components.list(db_session, page.id)
        assert [(c.component_type, c.position) for c in components] == [
            ("a", 0),
            ("b", 1),
            ("c", 2),
        ]

    def test_replace_with_empty_list(self, db_session, page):
        page_components.replace(db_session, page, [])
        assert page_components.list(db_session, page.id) == []

    def test_storage_failure_rolls_back(self, db_session, page):
        with patch.object(
            db_session, "flush", side_effect=OperationalError("INSERT", {}, Exception())
        ):
            with pytest.raises(HTTPException) as exc_info:
                page_components.replace(
                    db_session, page, [{"component_type": "broken"}]
                )
        assert exc_info.value.status_code == 503
        components = page_components.list(db_session, page.id)
        assert [c.component_type for c in components] == ["hero", "text", "cta"]


class TestSerializeComponents:
    def test_serialized_shape(self, db_session, page):
        serialized = serialize_components(page_components.list(db_session, page.id))
        assert serialized[0] == {
            "component_type": "hero",
            "position": 0,
            "props": {"title": "Welcome"},
            "styles": {},
            "responsive_config": {},
        }
