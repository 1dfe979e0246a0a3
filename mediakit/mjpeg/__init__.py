"""RTP/JPEG (RFC 2435) header generation, payloading and depayloading."""