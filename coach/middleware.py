from aiogram import BaseMiddleware
from aiogram.types import TelegramObject
from typing import Callable, Dict, Any
from coach.db import DB, COACH_KEY
from coach.services.advisor import Advisor


class DBMiddleware(BaseMiddleware):
    def __init__(self, db: DB, cfg, advisor: Advisor):
        super().__init__()
        self.db = db
        self.cfg = cfg
        self.advisor = advisor

    async def __call__(self, handler: Callable, event: TelegramObject, data: Dict[str, Any]) -> Any:
        data["db"] = self.db
        data["cfg"] = self.cfg
        data["advisor"] = self.advisor

        from_user = getattr(event, "from_user", None)
        if from_user:
            chat_obj = getattr(event, "chat", None)
            if chat_obj and getattr(chat_obj, "id", None):
                chat_id = chat_obj.id
            else:
                msg = getattr(event, "message", None)
                chat_id = getattr(getattr(msg, "chat", None), "id", 0) if msg else 0

            user_row = self.db.get_or_create_user(from_user.id, int(chat_id or 0))
            data["user_row"] = user_row
            # a key the user stored with /apikey takes precedence over the deployment default
            data["advisor"] = self.advisor.with_key(self.db.get_meta(user_row.id, COACH_KEY))

        return await handler(event, data)
