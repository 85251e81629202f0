import unittest

from gomarket.data_models import SubscriptionPlan, VerificationStatus
from gomarket.router import AppMode, Router, Screen, destination_for, sell_allowed
from tests.helpers import make_user


class TestDestination(unittest.TestCase):
    def test_after_splash(self):
        self.assertEqual(destination_for(None), Screen.LOGIN)
        pending = make_user("ann", verified=False)
        pending.status = VerificationStatus.PENDING
        self.assertEqual(destination_for(pending), Screen.PENDING_VERIFICATION)
        self.assertEqual(destination_for(make_user("ann", verified=False)), Screen.MODE_SELECT)
        self.assertEqual(destination_for(make_user("ann")), Screen.MODE_SELECT)

    def test_selling_needs_verification(self):
        self.assertTrue(sell_allowed(make_user("ann")))
        self.assertFalse(sell_allowed(make_user("ann", verified=False)))
        self.assertFalse(sell_allowed(None))


class TestRouter(unittest.TestCase):
    def setUp(self):
        self.router = Router()
        self.user = make_user("ann")

    def test_starts_on_splash(self):
        self.assertEqual(self.router.current, Screen.SPLASH)
        self.assertEqual(self.router.mode, AppMode.BROWSE)

    def test_screens_needing_a_user_redirect_to_login(self):
        for screen in (Screen.HOME, Screen.SETTINGS, Screen.SAVED_LISTINGS, Screen.INBOX,
                       Screen.PENDING_VERIFICATION):
            with self.subTest(screen=screen):
                self.assertEqual(self.router.go(screen, None), Screen.LOGIN)
        self.assertEqual(self.router.current, Screen.LOGIN)

    def test_profile_needs_a_viewed_profile(self):
        self.assertEqual(self.router.go(Screen.PROFILE, self.user), Screen.HOME)
        self.router.view_profile(make_user("bob"))
        self.assertEqual(self.router.go(Screen.PROFILE, self.user), Screen.PROFILE)

    def test_home_clears_viewed_profile(self):
        self.router.view_profile(make_user("bob"))
        self.router.go(Screen.HOME, self.user)
        self.assertIsNone(self.router.viewing_profile)

    def test_payment_needs_plan_and_user(self):
        self.assertEqual(self.router.go(Screen.PAYMENT, self.user), Screen.SUBSCRIPTION)
        self.router.select_plan(SubscriptionPlan.PRO)
        self.assertEqual(self.router.go(Screen.PAYMENT, None), Screen.SUBSCRIPTION)
        self.assertEqual(self.router.go(Screen.PAYMENT, self.user), Screen.PAYMENT)

    def test_verified_user_leaves_pending_screen(self):
        pending = make_user("ann", verified=False)
        pending.status = VerificationStatus.PENDING
        self.router.go(Screen.PENDING_VERIFICATION, pending)
        self.assertIsNone(self.router.on_user_changed(pending))
        self.assertEqual(self.router.on_user_changed(self.user), Screen.MODE_SELECT)
        self.assertEqual(self.router.current, Screen.MODE_SELECT)

    def test_verification_elsewhere_does_not_navigate(self):
        self.router.go(Screen.SETTINGS, self.user)
        self.assertIsNone(self.router.on_user_changed(self.user))

    def test_select_mode(self):
        self.router.select_mode("sell")
        self.assertEqual(self.router.mode, AppMode.SELL)


if __name__ == "__main__":
    unittest.main()
