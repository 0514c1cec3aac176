import os


class Settings:
    def __init__(self):
        self.app_name = "Timebill"
        self.api_version = "1.0.0"
        self.environment = os.getenv("TIMEBILL_ENVIRONMENT", "development")
        self.secret_key = os.getenv("TIMEBILL_SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = 30
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = os.getenv("TIMEBILL_DATABASE_URL", "sqlite:///./timebill.db")
        self.log_level = os.getenv("TIMEBILL_LOG_LEVEL", "INFO")

        # Billing
        self.default_hourly_rate = 0.0

        # Dashboard
        self.recent_work_hours_limit = 5
        self.recent_invoices_limit = 3
        self.recent_clients_limit = 2
        self.recent_activity_limit = 10
        self.top_clients_limit = 5
        self.dashboard_weekly_window_days = 28

        self.report_max_workers = 4


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
