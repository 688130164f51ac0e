import sys

from src.tasksync.client.main import main

sys.exit(main())
