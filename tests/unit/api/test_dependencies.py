"""Tests for request-scoped API dependencies."""

import pytest

from stockledger.api.dependencies import (
    ANONYMOUS_ACTOR_ID,
    ANONYMOUS_ACTOR_NAME,
    get_actor,
)


class TestGetActor:
    def test_from_headers(self):
        actor = get_actor(x_user_id="u-42", x_user_name="Mehmet Yılmaz")
        assert actor.id == "u-42"
        assert actor.name == "Mehmet Yılmaz"

    @pytest.mark.parametrize("user_id", [None, "", "   "])
    def test_anonymous_when_missing(self, user_id):
        actor = get_actor(x_user_id=user_id, x_user_name=None)
        assert actor.id == ANONYMOUS_ACTOR_ID
        assert actor.name == ANONYMOUS_ACTOR_NAME

    def test_name_defaults_to_id(self):
        assert get_actor(x_user_id="depo01", x_user_name=None).name == "depo01"

    def test_values_trimmed(self):
        actor = get_actor(x_user_id=" u-7 ", x_user_name=" Ali ")
        assert (actor.id, actor.name) == ("u-7", "Ali")
