"""
Tests for AutomationConfig
"""

import pytest

from ..config.settings import AutomationConfig


class TestAutomationConfig:
    """Test configuration defaults and environment loading"""

    def test_defaults(self):
        config = AutomationConfig()
        assert config.tick_interval_seconds == 60.0
        assert config.follow_up_delay_days == 7
        assert config.default_assignment_priority == "media"
        assert config.fallback_to_system_channel
        assert config.rules_file is None

    def test_from_env(self):
        config = AutomationConfig.from_env({
            "SAVISER_AUTOMATION_TICK_INTERVAL_SECONDS": "15",
            "SAVISER_AUTOMATION_FOLLOW_UP_DELAY_DAYS": "3",
            "SAVISER_AUTOMATION_FALLBACK_TO_SYSTEM_CHANNEL": "off",
            "SAVISER_AUTOMATION_RULES_FILE": "/etc/saviser/rules.yaml",
            "SAVISER_AUTOMATION_DEFAULT_ASSIGNMENT_REASON": "  ",
            "UNRELATED": "ignored"
        })

        assert config.tick_interval_seconds == 15.0
        assert config.follow_up_delay_days == 3
        assert not config.fallback_to_system_channel
        assert config.rules_file == "/etc/saviser/rules.yaml"
        assert config.default_assignment_reason == "Consulta automática"

    def test_from_env_empty(self):
        assert AutomationConfig.from_env({}) == AutomationConfig()

    def test_invalid_number(self):
        with pytest.raises(ValueError):
            AutomationConfig.from_env({"SAVISER_AUTOMATION_FOLLOW_UP_DELAY_DAYS": "seven"})

    def test_invalid_bool(self):
        with pytest.raises(ValueError):
            AutomationConfig.from_env({"SAVISER_AUTOMATION_FALLBACK_TO_SYSTEM_CHANNEL": "maybe"})

    def test_non_positive_interval(self):
        with pytest.raises(ValueError):
            AutomationConfig(tick_interval_seconds=0)

    def test_task_history_size(self):
        config = AutomationConfig.from_env({"SAVISER_AUTOMATION_TASK_HISTORY_SIZE": "50"})
        assert config.task_history_size == 50
        assert config.to_dict()["task_history_size"] == 50
        with pytest.raises(ValueError):
            AutomationConfig(task_history_size=0)

    def test_to_dict(self):
        data = AutomationConfig(tick_interval_seconds=5).to_dict()
        assert data["tick_interval_seconds"] == 5
        assert data["event_history_size"] == 1000
