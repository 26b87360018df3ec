import getpass
import warnings
from dataclasses import dataclass, field
from typing import Optional

Username = str
Password = str


@dataclass
class Basic:
    """
    Username and password used to log in to the FTP server.

    FTP sends these in the clear with USER and PASS. The password arrives here
    already revealed; keeping it obscured at rest is up to whatever config
    store supplied it.

    Attributes:
        user: Login name. Defaults to the name of the user running the
              process when left empty.
        password: Password for the login. May be empty for servers that
                 accept anonymous or password-less logins.
    """

    user: Optional[Username] = None
    password: Password = field(default="", repr=False)

    def __post_init__(self) -> None:
        """
        Fill in the default user and sanity check the credentials.

        Returns:
            None
        """
        if not self.user:
            self.user = getpass.getuser()

        if not self.user.strip():
            raise ValueError("Username cannot be whitespace")

        if not self.password:
            warnings.warn(
                f"No password configured for FTP user {self.user!r}. "
                "Most servers will refuse the login."
            )
