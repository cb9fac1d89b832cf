# run.py

import uvicorn
import os

# Use the PORT environment variable provided by the host
port = int(os.environ.get("PORT", 8000))

if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host="0.0.0.0",  # Accept connections from any IP
        port=port,
        reload=False
    )
