# S3 upload reporter: records uploads, writes thumbnails, mails a periodic report.
