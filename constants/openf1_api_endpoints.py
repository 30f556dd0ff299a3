from config.openf1_config import OpenF1Config

# https://openf1.org/#api-endpoints
DRIVERS_API_URL = f"{OpenF1Config.BASE_URL}/drivers"
SESSIONS_API_URL = f"{OpenF1Config.BASE_URL}/sessions"
POSITION_API_URL = f"{OpenF1Config.BASE_URL}/position"
LAPS_API_URL = f"{OpenF1Config.BASE_URL}/laps"
