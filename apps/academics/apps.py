# academics/apps.py

from django.apps import AppConfig


class AcademicsConfig(AppConfig):
    name = "academics"
    verbose_name = "Grading & Performance Analytics"
