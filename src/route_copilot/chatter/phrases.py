"""Phrase pools for co-driver chatter.

Each pool is a tuple of ``str.format`` templates; the engine picks one at
random with its session RNG and fills the named slots.
"""

SPEED_VERY_HIGH = (
    "{speed}. That's {over} over. Living dangerously.",
    "{speed} mph. Hope you know where the cops sit.",
    "{speed}. Your car, your choice. Eyes up.",
)
SPEED_HIGH = (
    "{speed} mph. {over} over the limit.",
    "Cruising at {speed}. Ticket territory.",
    "{speed}. Fast but manageable.",
)
SPEED_CREEP = ("Speed's crept up to {speed}. Intentional?",)
SPEED_NEW_MAX = ("{speed}. New high for this trip.",)
SPEED_CRUISE = (
    "Steady at {speed}. Good cruise speed.",
    "{speed} mph. Sweet spot for fuel economy.",
    "Holding {speed}. Nice and consistent.",
)

TIME_WAY_AHEAD = ("{mins} minutes ahead of schedule. Flying.",)
TIME_AHEAD = (
    "{mins} minutes ahead. Nice pace.",
    "Running {mins} ahead of schedule.",
    "Making good time. {mins} minutes up.",
)
TIME_WAY_BEHIND = ("{mins} minutes behind. Want to make it up?",)
TIME_BEHIND = ("Running {mins} behind schedule.",)
TIME_ETA = ("At this pace, arriving around {eta}.",)

ROAD_LONG_STRAIGHT = (
    "{miles} miles of straight road. Open it up if you want.",
    "Clear highway for {miles} miles.",
    "Long stretch ahead. {miles} miles to the next bend.",
)
ROAD_MEDIUM_STRAIGHT = ("Mile and a half of open road ahead.",)
ROAD_SECTION = ("Active section in {feet} feet. {count} bends.",)
ROAD_S_SWEEP = ("S-sweep coming. Starts {direction}.",)

PROGRESS = {
    25: ("Quarter of the way. {remaining} miles to go.",),
    50: (
        "Halfway there. Averaging {avg} mph so far.",
        "50% done. {remaining} miles remaining.",
        "Halfway point. Good progress.",
    ),
    75: ("Three quarters done. Only {remaining} miles left.",),
    90: (
        "Almost there. {remaining} miles to go.",
        "90% done. Home stretch.",
        "Final push. {remaining} miles.",
    ),
}

ZONE_TECHNICAL = ("Technical section in {distance}. Time to focus.",)
ZONE_TRANSIT = ("Back on highway in {distance}. Open road ahead.",)
ZONE_URBAN = ("Urban zone in {distance}. Watch for lights.",)

DENSITY_SHARP = ("Dense section ahead. {count} curves in the next 3 miles, {sharp} are sharp.",)
DENSITY_BUSY = ("Busy stretch coming. {count} curves over the next 3 miles.",)
DENSITY_EASY = ("Easy stretch ahead. Only {count} bends for the next 3 miles.",)

SAFETY_HOT = ("Been running hot for {mins} minutes. Cops love that.",)
SAFETY_EIGHTY = ("{mins} minutes at 80 plus. Just saying.",)

PATTERN_SWEEPERS = ("You're {diff} mph slower on {slower} sweepers than {faster}s.",)
PATTERN_STEADY = ("Rock steady. {avg} mph with barely any variation.",)
PATTERN_ERRATIC = ("Speed's all over the place. Settling in?",)
PATTERN_ZONE_FAST = ("{diff} faster than your average in this zone type.",)
SEGMENT_FASTER = ("That segment was {diff} mph faster than your average {zone} section.",)
SEGMENT_SLOWER = ("{diff} slower than usual on that {zone} stretch.",)

CONTEXT_RUSH_HOUR = ("Rush hour traffic possible ahead. Stay alert.",)
CONTEXT_LATE_NIGHT = (
    "Late night driving. Stay sharp.",
    "Roads should be empty this time of night.",
    "Night owl hours. Watch for wildlife.",
)
