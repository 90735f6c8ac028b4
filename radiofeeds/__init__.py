"""
Überwacht Hörerzahlen von Radio-Feeds und meldet ungewöhnliche Anstiege.

Dieses Paket deklariert nur die öffentlich verfügbaren Einstiegspunkte
für die Polling-Schleife, die Konfig-Ladefunktion und die Averages-Ablage.
"""

from .config import AppConfig, load_config
from .orchestrator import PollLoop
from .store import load_averages, save_averages

__all__ = ["AppConfig", "PollLoop", "load_averages", "load_config", "save_averages"]
