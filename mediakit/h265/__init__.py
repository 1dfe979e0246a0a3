"""H.265 NAL unit helpers and RTP payloader."""