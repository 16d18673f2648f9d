from httpx import AsyncClient

from packages.plans.models.database.plan import PlanEntity


class TestPlanRoutes:
    async def test_lists_visible_plans(self, anonymous_client: AsyncClient, test_db, sample_plan):
        test_db.add_all(
            [
                PlanEntity(
                    id="pln_hiddenPlan000001",
                    name="Hidden",
                    limit_5h_units=1,
                    limit_7d_units=1,
                    is_hidden=True,
                ),
                PlanEntity(
                    id="pln_retiredPlan00001",
                    name="Retired",
                    limit_5h_units=1,
                    limit_7d_units=1,
                    is_active=False,
                ),
                PlanEntity(
                    id="pln_grantOnlyPlan001",
                    name="Grant only",
                    limit_5h_units=4,
                    limit_7d_units=20,
                ),
            ]
        )
        await test_db.commit()

        response = await anonymous_client.get("/api/v1/plans")

        assert response.status_code == 200
        plans = {plan["id"]: plan for plan in response.json()}
        assert set(plans) == {"pln_basicPlan0000001", "pln_grantOnlyPlan001"}
        assert plans["pln_basicPlan0000001"]["purchasable"] is True
        assert plans["pln_basicPlan0000001"]["limit_7d_units"] == 10.0
        assert plans["pln_grantOnlyPlan001"]["purchasable"] is False
        assert "stripe_price_id" not in plans["pln_basicPlan0000001"]
