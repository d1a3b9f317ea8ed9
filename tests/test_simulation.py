import numpy as np
import pytest

from hearo.config import AppConfig
from hearo.simulation.event_player import AudioEvent, EventPlayer, Scenario
from hearo.simulation.indoor import build_scenario as indoor_scenario
from hearo.simulation.kitchen_fire import build_scenario as kitchen_fire_scenario
from hearo.simulation.nursery import build_scenario as nursery_scenario
from hearo.simulation.replay import replay
from hearo.system.haptic import HapticChannel
from hearo.system.models import Severity
from hearo.system.state import Screen


@pytest.mark.parametrize("builder", [indoor_scenario, nursery_scenario, kitchen_fire_scenario])
def test_scenarios_detect_every_event(builder):
    scenario = builder()
    result = replay(scenario)
    assert result.false_alerts == 0
    assert all(count == 0 for count in result.misses.values())
    assert sorted(a.label for a in result.alerts) == sorted(e.label for e in scenario.events)


def test_kitchen_fire_timeline():
    haptic = HapticChannel()
    result = replay(kitchen_fire_scenario(), channels=[haptic])

    assert [a.label for a in result.alerts] == ["fire_alarm", "smoke_detector"]
    assert [a.id for a in result.alerts] == [1, 2]
    assert all(a.severity is Severity.CRITICAL for a in result.alerts)
    assert result.latencies["fire_alarm"] == [pytest.approx(3.0)]
    assert result.latencies["smoke_detector"] == [pytest.approx(1.0)]
    assert haptic.history == [Severity.CRITICAL, Severity.CRITICAL]
    assert result.app_state.screen is Screen.EMERGENCY
    assert result.app_state.history.recent(1)[0].label == "smoke_detector"


def test_indoor_stays_on_home_screen():
    result = replay(indoor_scenario())
    assert result.app_state.screen is Screen.HOME
    assert result.summary() == {"doorbell": pytest.approx(1.0), "phone_ring": pytest.approx(1.0)}


def test_silent_scenario_raises_nothing():
    result = replay(Scenario("quiet", length_s=9.0, noise_level=0.005, seed=4))
    assert result.alerts == []
    assert result.false_alerts == 0


def test_timeline_is_deterministic():
    first = EventPlayer(nursery_scenario()).timeline
    second = EventPlayer(nursery_scenario()).timeline
    assert np.array_equal(first, second)
    assert len(first) == int(32.0 * 16000)


def test_event_player_schedule_and_duration():
    scenario = Scenario(
        "two_bells",
        length_s=10.0,
        noise_level=0.0,
        events=[AudioEvent("doorbell", 1.0, 1.0), AudioEvent("doorbell", 6.0, 1.0)],
    )
    player = EventPlayer(scenario)
    assert player.event_schedule() == {"doorbell": [1.0, 6.0]}
    assert player.duration_s == pytest.approx(10.0)
    assert np.all(player.timeline[:16000] == 0.0)


def test_unknown_event_label_rejected():
    scenario = Scenario("bad", length_s=2.0, noise_level=0.0, events=[AudioEvent("dog_bark", 0.5, 1.0)])
    with pytest.raises(ValueError):
        EventPlayer(scenario)


def test_replay_honours_custom_config():
    config = AppConfig(activity_threshold=0.9)
    result = replay(kitchen_fire_scenario(), config=config)
    assert result.alerts == []
    assert result.misses == {"fire_alarm": 1, "smoke_detector": 1}
