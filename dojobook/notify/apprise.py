import apprise

from dojobook.schemas.config.config import read_app_config

# admin channel for operational failures, members are notified through notify.sender
aprs = apprise.Apprise()
app_config = read_app_config()
if (apprise_config := app_config.notifications.apprise) is not None:
    config = apprise.AppriseConfig()
    config.add(apprise_config.config_file)
    aprs.add(config)
