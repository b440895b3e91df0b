import logging
import sys
from datetime import datetime
import os

class ColoredFormatter(logging.Formatter):
    """Console formatter that colors whole lines by level when attached to a TTY"""

    COLORS = {
        'DEBUG': '\033[36m',    # Cyan
        'INFO': '\033[32m',     # Green
        'WARNING': '\033[33m',  # Yellow
        'ERROR': '\033[31m',    # Red
        'CRITICAL': '\033[35m', # Magenta
        'RESET': '\033[0m'
    }

    def format(self, record):
        level_color = self.COLORS.get(record.levelname, '')
        reset_color = self.COLORS['RESET']

        formatted = super().format(record)

        if sys.stdout.isatty():
            formatted = f"{level_color}{formatted}{reset_color}"

        return formatted

def setup_logging(log_level=logging.INFO, log_to_file=True, log_dir='logs'):
    """Configure the root logger used by every pipeline component"""

    logger = logging.getLogger()
    logger.setLevel(log_level)

    # Re-running setup (api.py and main.py both call it) must not duplicate output
    logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_formatter = ColoredFormatter(
        '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
        datefmt='%H:%M:%S'
    )
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if log_to_file:
        os.makedirs(log_dir, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        file_handler = logging.FileHandler(os.path.join(log_dir, f'testgen_logs_{timestamp}.log'))
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter(
            '%(asctime)s | %(name)s | %(levelname)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    return logger

def get_agent_logger(agent_name):
    """Get a logger for a specific pipeline component"""
    return logging.getLogger(f"Agent.{agent_name}")

# Component emojis for quick visual scanning of the console
AGENT_EMOJIS = {
    'ROUTER': '🧭',
    'CLASSIFIER': '🔎',
    'A11Y': '♿',
    'API': '🌐',
    'SECURITY': '🛡️',
    'FUNCTIONAL': '🖱️',
    'EMITTER': '📝',
    'STORE': '💾',
    'ANALYZER': '🎭',
    'MAIN': '🧩',
    'WEB': '🚀',
}

def log_agent_start(agent_name, input_data):
    """Log when a component starts processing"""
    logger = get_agent_logger(agent_name)
    emoji = AGENT_EMOJIS.get(agent_name, '🤖')
    logger.info(f"{emoji} {agent_name} STARTED")
    logger.debug(f"{emoji} {agent_name} Input: {input_data}")

def log_agent_thinking(agent_name, thought):
    """Log an intermediate decision"""
    logger = get_agent_logger(agent_name)
    emoji = AGENT_EMOJIS.get(agent_name, '🤖')
    logger.info(f"{emoji} {agent_name} THINKING: {thought}")

def log_agent_complete(agent_name, output_data):
    """Log when a component completes processing"""
    logger = get_agent_logger(agent_name)
    emoji = AGENT_EMOJIS.get(agent_name, '🤖')
    logger.info(f"{emoji} {agent_name} COMPLETED")
    logger.debug(f"{emoji} {agent_name} Output: {output_data}")

def log_agent_error(agent_name, error):
    """Log when a component encounters an error"""
    logger = get_agent_logger(agent_name)
    emoji = AGENT_EMOJIS.get(agent_name, '🤖')
    logger.error(f"{emoji} {agent_name} ERROR: {error}")

def log_playwright_action(action_description):
    """Log playwright actions performed by the website analyzer"""
    logger = get_agent_logger('ANALYZER')
    logger.info(f"🎭 PLAYWRIGHT ACTION: {action_description}")
