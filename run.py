import os
import socket
import uvicorn

def get_lan_ip():
    try:
        # Connect to a public DNS server to determine the route
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        s.connect(("8.8.8.8", 80))
        ip = s.getsockname()[0]
        s.close()
        return ip
    except OSError:
        return "127.0.0.1"

def main():
    lan_ip = get_lan_ip()
    port = int(os.getenv("PORT", "8000"))

    # TLS is optional, point both variables at an existing cert/key pair to enable it
    cert_file = os.getenv("SSL_CERTFILE")
    key_file = os.getenv("SSL_KEYFILE")
    scheme = "https" if cert_file and key_file else "http"

    print("\n" + "="*60)
    print(f"🚀 SERVER STARTING")
    print(f"📡 LAN URL:  {scheme}://{lan_ip}:{port}/login")
    print(f"🏠 Local:    {scheme}://127.0.0.1:{port}/login")
    print("="*60 + "\n")

    uvicorn.run(
        "totp_login.main:app",
        host="0.0.0.0",
        port=port,
        ssl_keyfile=key_file if scheme == "https" else None,
        ssl_certfile=cert_file if scheme == "https" else None,
        reload=os.getenv("RELOAD", "false").lower() == "true",
    )

if __name__ == "__main__":
    main()
