from __future__ import annotations

from core.config import OPTION_DEFAULTS, SynchronizedAction, filter_config_from_mapping


def test_absent_keys_use_documented_defaults() -> None:
    config = filter_config_from_mapping({})

    assert config.use_blacklist is True
    assert config.use_whitelist is False
    assert config.dry_run is True
    assert config.blacklist == ()
    assert config.synchronized_video_action == SynchronizedAction.HIDE
    assert OPTION_DEFAULTS["youtubeLanguage"] == ""


def test_stored_values_are_applied() -> None:
    config = filter_config_from_mapping(
        {
            "useWhitelist": True,
            "dryrun": False,
            "blacklist": [{"name": "x"}],
            "synchronizedVideoAction": "notInterested",
            "customNotInterestedPattern": None,
        }
    )

    assert config.use_whitelist is True
    assert config.dry_run is False
    assert config.blacklist == ({"name": "x"},)
    assert config.synchronized_video_action == SynchronizedAction.NOT_INTERESTED
    assert config.custom_not_interested_pattern == ""


def test_unknown_synchronized_action_falls_back_to_hide() -> None:
    config = filter_config_from_mapping({"synchronizedVideoAction": "explode"})
    assert config.synchronized_video_action == SynchronizedAction.HIDE
