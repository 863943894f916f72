"""Application-wide constants for the office-hours platform."""

# Session duration constraints (minutes)
MIN_SESSION_DURATION = 15
MAX_SESSION_DURATION = 120
DEFAULT_SESSION_DURATION = 60

# Neutral score used when a query does not constrain a factor
NEUTRAL_SCORE = 0.5
PARTIAL_MATCH_SCORE = 0.7
AVAILABILITY_FLOOR_SCORE = 0.3

# Explanation thresholds
EXPLANATION_FACTOR_THRESHOLD = 0.7
EXPLANATION_AVAILABILITY_THRESHOLD = 0.8
HIGHLY_RATED_THRESHOLD = 4.5
GENERIC_MATCH_EXPLANATION = "Matches your search criteria"

# Mentee matching for mentors: one point per goal the mentor covers,
# half a point each for a shared industry or stage
MENTEE_GOAL_MATCH_POINTS = 1.0
MENTEE_PROFILE_MATCH_BONUS = 0.5
GENERIC_MENTEE_EXPLANATION = "Potential match based on your expertise"

# Text constraints
MAX_GOALS_LENGTH = 2000
MAX_ERROR_MESSAGE_LENGTH = 1000

DEFAULT_LOCATION = "virtual"

# API metadata
API_TITLE = "Office Hours API"
API_DESCRIPTION = "Mentor office-hours booking, matching and profile sync"
API_VERSION = "1.0.0"
SERVICE_NAME = "officehours-api"

# Utilization reported on mentor sync, measured over the trailing window
UTILIZATION_WINDOW_DAYS = 30
