import sys
from review_service.core import config
from review_service.utils.auth import create_rater_token

if __name__ == "__main__":
    if len(sys.argv) != 2:
        sys.exit("usage: issue-token.py <rater-id>")
    print(create_rater_token(sys.argv[1], config.get_settings()))
