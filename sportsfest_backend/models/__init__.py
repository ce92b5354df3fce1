# sportsfest_backend/models/__init__.py
# Centralized imports for all database models and schemas

# Admins
from .admin_model import Admin, AdminSession, AdminRole, AdminRegister, AdminLogin

# Fouls (sub-ledger)
from .foul_model import Foul, FoulCreate, FoulRead

# Matches
from .match_model import Match, MatchCreate, MatchRead, StatusUpdate, SuspendedPlayer

# Live update actions
from .action_schemas import MatchAction, parse_action
