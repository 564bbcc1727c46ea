from __future__ import annotations

import json
import logging
import os

from sumsub_client import SumsubClient, SumsubSettings


def main() -> None:
    logging.basicConfig(level=logging.DEBUG)
    with SumsubClient.from_settings(SumsubSettings()) as client:
        level = os.getenv("SUMSUB_LEVEL_NAME", "basic-kyc-level")
        user_id = os.getenv("EXTERNAL_USER_ID", "platform-user-1")
        applicant_id = client.create_applicant(
            {"id": user_id, "email": "jane@example.com", "firstName": "Jane", "lastName": "Doe", "country": "USA", "tin": "123456789"},
            level,
        )
        link = client.get_verification_link(user_id, level, 1800)
        print(json.dumps({"applicant_id": applicant_id, "verification_url": link.get("url")}, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
