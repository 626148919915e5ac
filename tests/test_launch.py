"""Tests for the overlay launcher command."""

import pytest

from onion_overlay.scripts import launch


def test_launch_runs_network(mocker) -> None:
    run = mocker.patch("onion_overlay.scripts.launch.asyncio.run")
    network = mocker.patch("onion_overlay.scripts.launch.launch_network", mocker.Mock())

    assert launch.main(["launch", "--relays", "5", "--users", "3"]) == 0

    network.assert_called_once_with(5, 3)
    run.assert_called_once_with(network.return_value)


def test_launch_rejects_negative_counts(mocker) -> None:
    mocker.patch("onion_overlay.scripts.launch.asyncio.run")
    with pytest.raises(SystemExit):
        launch.main(["launch", "--relays", "-1"])


def test_command_is_required() -> None:
    with pytest.raises(SystemExit):
        launch.main([])
