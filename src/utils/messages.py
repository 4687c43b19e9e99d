from textual.message import Message


class QuitRequestedMessage(Message):
    """
    broadcasted when the app is about to quit
    """

    bubble = True


class UserLogoutMessage(Message):
    """
    posted by the sidebar when the user confirms signing out
    """

    bubble = True


class UserLoginMessage(Message):
    """
    Fired after the session changed (sign in, sign out, restored session).
    Screens rebuild their menus and user info.
    """

    bubble = True


class CartChangedMessage(Message):
    """
    Fired whenever the cart view-model changes, including rollbacks.
    Must be posted at App level to reach screens that are not active.
    """

    bubble = True


class NewOrderMessage(Message):
    """
    Fired when a new order is created.
    The app opens the account screen so the order shows up.
    """

    bubble = True


class CatalogChangedMessage(Message):
    """
    Fired by the admin screens after a product, category, color or size changed
    """

    bubble = True


class ModeSwitchedMessage(Message):
    """
    fired whenever switch_mode is called
    must be fired from app level
    """

    bubble = True

    def __init__(self, old_mode: str, new_mode: str) -> None:
        super().__init__()
        self.old_mode = old_mode
        self.new_mode = new_mode
