"""Internal constants shared across the library."""

DEFAULT_URL = "ws://localhost:9090"
ROSBRIDGE_URL_KEY = "rosbridge_url"

# ------------------------------------------------------------------
# Default topic names
# ------------------------------------------------------------------

CMD_VEL_TOPIC = "/cmd_vel"
BATTERY_TOPIC = "/battery_data"
POSE_TOPIC = "/robot_pose"
ROBOT_STATE_TOPIC = "/robot_state"
MISSION_STATUS_TOPIC = "/mission_status"
MISSION_QUEUE_TOPIC = "/mission_queue"
DIAGNOSTICS_TOPIC = "/diagnostics"
ROSOUT_TOPIC = "/rosout"

GOAL_POSE_TOPIC = "/goal_pose"
NAVIGATE_TO_QR_TOPIC = "/navigate_to_qr"
CHARGE_BATTERY_TOPIC = "/charge_battery"
GRAPH_NODES_TOPIC = "/graph_nodes"

VDA_STATUS_TOPIC = "/vda5050/status"
VDA_ORDER_TOPIC = "/vda5050/order"
VDA_INSTANT_ACTIONS_TOPIC = "/vda5050/instant_actions"

# ------------------------------------------------------------------
# rosapi services
# ------------------------------------------------------------------

ROSAPI_NODES_SERVICE = "/rosapi/nodes"
ROSAPI_TOPICS_SERVICE = "/rosapi/topics"

# ------------------------------------------------------------------
# Teleoperation defaults
# ------------------------------------------------------------------

DEFAULT_COMMAND_RATE_HZ = 10.0
DEFAULT_POINTER_RADIUS = 100.0
DEFAULT_RECONNECT_BASE_DELAY = 2.0
DEFAULT_RECONNECT_MAX_ATTEMPTS = 5
