# module vendgb.app
from vendgb.app_setup.factory import create_app

# App globale
app = create_app()
