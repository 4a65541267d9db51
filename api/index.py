from mangum import Mangum
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from staking.api import app_from_env

app = app_from_env(root_path="/api")

handler = Mangum(app)
