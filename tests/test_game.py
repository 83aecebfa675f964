"""Tests for chatrelay.game — game client protocol and factory loading."""

from __future__ import annotations

import pytest

from chatrelay.game import GameClient, GameClientFactoryError, load_game_client_factory


class _Client:
    async def send_chat(self, text: str) -> None:
        pass


def build_client(config: object, coordinator: object) -> _Client:
    return _Client()


NOT_CALLABLE = 42


class TestLoadFactory:
    def test_resolves_dotted_path(self) -> None:
        factory = load_game_client_factory(f"{__name__}:build_client")
        assert factory is build_client
        assert isinstance(factory(None, None), GameClient)  # type: ignore[arg-type]

    @pytest.mark.parametrize("path", ["no_colon", ":attr", "module:"])
    def test_malformed_path(self, path: str) -> None:
        with pytest.raises(GameClientFactoryError, match="expected"):
            load_game_client_factory(path)

    def test_missing_module(self) -> None:
        with pytest.raises(GameClientFactoryError, match="import"):
            load_game_client_factory("chatrelay_no_such_module:build")

    def test_missing_attribute(self) -> None:
        with pytest.raises(GameClientFactoryError, match="no callable"):
            load_game_client_factory(f"{__name__}:nope")

    def test_not_callable(self) -> None:
        with pytest.raises(GameClientFactoryError, match="no callable"):
            load_game_client_factory(f"{__name__}:NOT_CALLABLE")
