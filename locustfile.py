from locust import HttpUser, task, between
import csv
import os
import random

# Addresses from ADDRESSES_CSV (column "address"); random ones when the file is missing
ADDRESSES_CSV = os.getenv("ADDRESSES_CSV", "addresses.csv")

addresses = []
if os.path.exists(ADDRESSES_CSV):
    with open(ADDRESSES_CSV) as f:
        for row in csv.DictReader(f):
            addresses.append(row["address"])
if not addresses:
    rng = random.Random(7)
    addresses = ["0x" + "".join(rng.choices("0123456789abcdef", k=40)) for _ in range(200)]


class WalletRiskUser(HttpUser):
    wait_time = between(1, 2)

    @task(5)
    def score(self):
        self.client.get("/score", params={"address": random.choice(addresses)}, name="/score")

    @task(2)
    def neighbors(self):
        self.client.get(
            "/neighbors",
            params={"address": random.choice(addresses), "limit": 50},
            name="/neighbors",
        )

    @task(1)
    def score_batch(self):
        # random 5 addresses per request
        sample = random.sample(addresses, min(5, len(addresses)))
        self.client.post("/score/batch", json={"addresses": sample})
