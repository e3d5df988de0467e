from portal.views.account_handlers import create_user as create_user
from portal.views.account_handlers import delete_user as delete_user
from portal.views.account_handlers import list_users as list_users
from portal.views.auth_handlers import heartbeat as heartbeat
from portal.views.auth_handlers import login as login
from portal.views.auth_handlers import logout as logout
from portal.views.gambling_handlers import get_credits as get_credits
from portal.views.gambling_handlers import place_bet as place_bet
from portal.views.search_handlers import list_searches as list_searches
from portal.views.search_handlers import record_search as record_search
from portal.views.session_handlers import force_logout as force_logout
from portal.views.session_handlers import list_sessions as list_sessions
