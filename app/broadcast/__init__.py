"""Рассылка push-уведомлений: аудитория, отправка, история."""
