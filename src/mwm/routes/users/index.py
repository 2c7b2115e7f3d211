from mwm import Template
from mwm.data import accounts


async def handler(db):
    return Template("users/index.html", users=await accounts.list_users(db))
