DAY_KEYS = ["sun", "mon", "tue", "wed", "thu", "fri", "sat"]

DEFAULT_OPACITY = 30
DEFAULT_BORDER_WIDTH = 2
MIN_CALENDAR_BORDER_WIDTH = 1
MAX_CALENDAR_BORDER_WIDTH = 6
MAX_QUICK_ACCESS_COLORS = 10

ALL_DAY_RANGE = ("00:00", "23:59")
TIME_BLOCK_STYLES = {"solid", "hashed"}

CALENDAR_COLOR_FIELDS = {"background", "text", "border", "borderWidth"}

DEFAULT_WEEKDAY_COLORS = {
    "0": "#ffd5d5",
    "1": "#e8deff",
    "2": "#d5f5e3",
    "3": "#ffe8d5",
    "4": "#d5f0ff",
    "5": "#fff5d5",
    "6": "#f0d5ff",
}
DEFAULT_WEEKDAY_OPACITY = {str(idx): DEFAULT_OPACITY for idx in range(7)}

DEFAULT_PALETTE = {
    "id": "default",
    "name": "ColorKit Essentials",
    "order": 0,
    "isDefault": True,
    "colors": [
        {"hex": "#4285f4", "label": "Primary Blue"},
        {"hex": "#ea4335", "label": "Alert Red"},
        {"hex": "#34a853", "label": "Success Green"},
        {"hex": "#fbbc04", "label": "Warning Yellow"},
        {"hex": "#ff6d01", "label": "Vibrant Orange"},
        {"hex": "#9c27b0", "label": "Deep Purple"},
        {"hex": "#e91e63", "label": "Hot Pink"},
        {"hex": "#00bcd4", "label": "Cyan"},
        {"hex": "#8bc34a", "label": "Light Green"},
        {"hex": "#ff9800", "label": "Amber"},
        {"hex": "#607d8b", "label": "Blue Grey"},
        {"hex": "#795548", "label": "Brown"},
    ],
}

DEFAULT_SETTINGS = {
    "enabled": True,
    "weekdayColors": DEFAULT_WEEKDAY_COLORS,
    "weekdayOpacity": DEFAULT_WEEKDAY_OPACITY,
    "dateColors": {},
    "dateOpacity": {},
    "dateColorLabels": {},
    "timeBlocking": {
        "enabled": True,
        "globalColor": "#FFEB3B",
        "shadingStyle": "solid",
        "weeklySchedule": {key: [] for key in DAY_KEYS},
        "dateSpecificSchedule": {},
    },
    "eventColoring": {
        "enabled": True,
        "categories": {DEFAULT_PALETTE["id"]: DEFAULT_PALETTE},
        "templates": {},
        "googleColorLabels": {},
        "quickAccessColors": [],
        "disableCustomColors": False,
        "calendarColors": {},
    },
    "eventColors": {},
}

# Nested maps a partial write replaces whole, so removed keys stay removed.
REPLACE_KEYS = {
    "dateColors",
    "dateOpacity",
    "dateColorLabels",
    "weeklySchedule",
    "dateSpecificSchedule",
    "calendarColors",
    "categories",
    "templates",
    "eventColors",
}

SETTINGS_KEY = "colorkit_settings"
