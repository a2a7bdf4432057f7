from locust import HttpUser, task, between
import random
import re

class Shopper(HttpUser):
    wait_time = between(0.1, 0.5)

    def on_start(self):
        # Collect product ids from the storefront once per simulated client
        r = self.client.get("/")
        self.product_ids = [int(pid) for pid in re.findall(r'/product/(\d+)', r.text)] if r.status_code == 200 else []

    @task(3)
    def view_product(self):
        if not self.product_ids:
            return
        self.client.get(f"/product/{random.choice(self.product_ids)}", name="/product/[id]")

    @task(2)
    def add_to_cart(self):
        if not self.product_ids:
            return
        self.client.post("/cart/add", data={"product_id": random.choice(self.product_ids), "qty": random.randint(1, 3)})

    @task(1)
    def view_cart(self):
        self.client.get("/cart")
